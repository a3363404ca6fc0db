"""
Domain model for the person a report is about.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional

DEFAULT_SUBJECT_NAME = "User"


@dataclass(frozen=True)
class SubjectProfile:
    """Name, birth date and most recent height of a user."""

    name: str = DEFAULT_SUBJECT_NAME
    birth_date: Optional[date] = None
    height_cm: Optional[int] = None

    def age_on(self, today: date) -> Optional[int]:
        """
        Age in whole years on ``today``.

        Returns None when the birth date is unknown or lies in the future.
        """
        if self.birth_date is None or self.birth_date > today:
            return None
        age = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            age -= 1
        return age
