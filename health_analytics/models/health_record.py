"""
Domain model for health records.

A record is one check-in by a user. Every metric on it is optional and
independently present; analytics code asks the has_* predicates rather than
testing fields directly.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class HealthRecord:
    """Model representing one stored health check-in."""

    id: int
    user_id: int
    timestamp: datetime
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    blood_sugar: Optional[int] = None
    weight: Optional[float] = None
    height_cm: Optional[int] = None
    heart_rate: Optional[int] = None
    activity: Optional[str] = None

    @property
    def has_blood_pressure(self) -> bool:
        # A lone systolic or diastolic value is treated as no reading.
        return self.systolic is not None and self.diastolic is not None

    @property
    def has_blood_sugar(self) -> bool:
        return self.blood_sugar is not None

    @property
    def has_weight(self) -> bool:
        return self.weight is not None

    @property
    def has_heart_rate(self) -> bool:
        return self.heart_rate is not None

    @property
    def has_activity(self) -> bool:
        return bool(self.activity and self.activity.strip())
