"""
Activity estimation.

Records only carry free-text activity descriptions ("walked to the market"),
so steps and calories are estimated from the number of activity entries. The
flat rate lives behind ActivityEstimator so a real estimator can replace it
without touching aggregation or trend code.
"""
from dataclasses import dataclass
from typing import Iterable, Protocol

from health_analytics.models import HealthRecord

STEPS_PER_ENTRY = 1000
CALORIES_PER_ENTRY = 200


@dataclass(frozen=True)
class ActivityEstimate:
    entries: int
    steps: int
    calories: int


class ActivityEstimator(Protocol):
    def estimate(self, records: Iterable[HealthRecord]) -> ActivityEstimate:
        ...


class FlatRateActivityEstimator:
    """Credits a fixed number of steps and calories per recorded activity."""

    def __init__(self, steps_per_entry: int = STEPS_PER_ENTRY, calories_per_entry: int = CALORIES_PER_ENTRY):
        self.steps_per_entry = steps_per_entry
        self.calories_per_entry = calories_per_entry

    def estimate(self, records: Iterable[HealthRecord]) -> ActivityEstimate:
        entries = sum(1 for r in records if r.has_activity)
        return ActivityEstimate(
            entries=entries,
            steps=entries * self.steps_per_entry,
            calories=entries * self.calories_per_entry,
        )
