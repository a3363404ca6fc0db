"""
Time window resolution.

Turns a range selector (or explicit custom dates) into concrete start/end
instants in the reporting timezone, derives the equivalent prior window used for
period-over-period comparison, and resolves the fixed trend window.

Windows are inclusive: start is 00:00:00 of the first day and end is 23:59:59 of
the last day. Prior windows end exactly at the current window's start and are
end-exclusive, so a record is never counted in both periods.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Callable, Optional

from health_analytics.core.datetime_utils import end_of_day, local_date, start_of_day, to_local, utc_now
from health_analytics.core.exceptions import InvalidRangeError, MissingRangeBoundsError

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 90


class RangeSelector(str, Enum):
    """Supported time ranges. Values are the wire names accepted by the API."""

    SHORT = "7days"
    MEDIUM = "30days"
    LONG = "3months"
    CUSTOM = "custom"

    @property
    def days(self) -> Optional[int]:
        """Length of a fixed range in days, None for custom."""
        return _SELECTOR_DAYS.get(self)

    @classmethod
    def parse(cls, value: Optional[str]) -> "RangeSelector":
        """
        Parse a selector, defaulting to SHORT when none is given.

        Accepts wire values ("7days") and names ("short"), case-insensitively.
        """
        if value is None or not value.strip():
            return cls.SHORT
        normalized = value.strip().lower()
        for selector in cls:
            if normalized in (selector.value, selector.name.lower()):
                return selector
        raise InvalidRangeError(
            detail=f"Unknown time range '{value}'",
            time_range=value,
        )


_SELECTOR_DAYS = {
    RangeSelector.SHORT: 7,
    RangeSelector.MEDIUM: 30,
    RangeSelector.LONG: TREND_WINDOW_DAYS,
}


@dataclass(frozen=True)
class TimeWindow:
    """A concrete [start, end] interval in the reporting timezone."""

    start: datetime
    end: datetime
    selector: RangeSelector
    end_exclusive: bool = False

    @property
    def duration(self) -> timedelta:
        # Inclusive windows end at 23:59:59, one second short of whole days.
        if self.end_exclusive:
            return self.end - self.start
        return self.end - self.start + timedelta(seconds=1)

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def contains(self, moment: datetime) -> bool:
        """Whether ``moment`` falls inside the window."""
        if moment < self.start:
            return False
        return moment < self.end if self.end_exclusive else moment <= self.end

    def previous(self) -> "TimeWindow":
        """The equivalent prior window: same duration, ending at this window's start."""
        return TimeWindow(
            start=self.start - self.duration,
            end=self.start,
            selector=self.selector,
            end_exclusive=True,
        )


class TimeWindowResolver:
    """
    Resolves selectors into TimeWindows.

    The timezone and clock are injected so "today" is deterministic under test.
    """

    def __init__(self, tz: tzinfo, clock: Optional[Callable[[], datetime]] = None):
        self._tz = tz
        self._clock = clock or utc_now

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        """Current instant in the reporting timezone."""
        return to_local(self._clock(), self._tz)

    def today(self) -> date:
        return local_date(self._clock(), self._tz)

    def last_days(self, days: int, selector: RangeSelector) -> TimeWindow:
        """Window of ``days`` calendar days ending today (today included)."""
        today = self.today()
        return TimeWindow(
            start=start_of_day(today - timedelta(days=days - 1), self._tz),
            end=end_of_day(today, self._tz),
            selector=selector,
        )

    def resolve(
        self,
        selector: RangeSelector,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TimeWindow:
        """
        Resolve a selector into a concrete window.

        Args:
            selector: Requested range.
            start_date: First day, required for CUSTOM.
            end_date: Last day, required for CUSTOM.

        Returns:
            The resolved TimeWindow.

        Raises:
            MissingRangeBoundsError: CUSTOM without both dates.
            InvalidRangeError: CUSTOM whose start is after its end.
        """
        if selector is not RangeSelector.CUSTOM:
            return self.last_days(selector.days, selector)

        if start_date is None or end_date is None:
            raise MissingRangeBoundsError(
                start_date=str(start_date) if start_date else None,
                end_date=str(end_date) if end_date else None,
            )
        if start_date > end_date:
            raise InvalidRangeError(start_date=str(start_date), end_date=str(end_date))

        window = TimeWindow(
            start=start_of_day(start_date, self._tz),
            end=end_of_day(end_date, self._tz),
            selector=selector,
        )
        logger.debug(
            "Resolved custom window",
            extra={"start": window.start.isoformat(), "end": window.end.isoformat()}
        )
        return window

    def trend_window(self) -> TimeWindow:
        """The fixed 90-day window that feeds every trend chart."""
        return self.last_days(TREND_WINDOW_DAYS, RangeSelector.LONG)
