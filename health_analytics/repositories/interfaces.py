"""
Interfaces the analytics engine consumes.

The engine only ever talks to these protocols, so any store that can answer
them (the bundled SQLite repositories, an HTTP client, an in-memory fake) can
back it. Implementations raise UpstreamFetchFailedError on failure.
"""
from datetime import datetime
from typing import List, Optional, Protocol

from health_analytics.models import HealthRecord, SubjectProfile
from health_analytics.services.time_window import TimeWindow


class HealthRecordSource(Protocol):
    """Read access to a user's health records."""

    def fetch_records(self, user_id: int, start: datetime, end: datetime) -> List[HealthRecord]:
        """Records with start <= timestamp <= end, any order."""
        ...

    def fetch_records_for_comparison(self, user_id: int, window: TimeWindow) -> List[HealthRecord]:
        """Records in the prior equivalent window of ``window``."""
        ...

    def fetch_latest_record(self, user_id: int) -> Optional[HealthRecord]:
        """Most recent record, or None if the user has none."""
        ...


class SubjectProfileSource(Protocol):
    """Read access to user profiles."""

    def fetch_subject_profile(self, user_id: int) -> Optional[SubjectProfile]:
        """Profile for ``user_id``, or None if the user is unknown."""
        ...
