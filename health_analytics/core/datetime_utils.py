"""
Timezone helpers for the Health Analytics service.

Storage is UTC-first: timestamps are persisted as ISO 8601 strings with a 'Z'
suffix. Analytics are reporting-timezone-first: calendar days, window bounds and
printed timestamps are all taken in the configured reporting timezone, which is
always passed in explicitly.

Usage:
    from health_analytics.core.datetime_utils import local_date, start_of_day

    tz = settings.reporting_timezone
    day = local_date(record.timestamp, tz)
    start = start_of_day(day, tz)
"""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union


DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz: tzinfo) -> datetime:
    """Convert a datetime to the reporting timezone (naive input is treated as UTC)."""
    return to_utc(dt).astimezone(tz)


def local_date(dt: datetime, tz: tzinfo) -> date:
    """Calendar day of ``dt`` in the reporting timezone."""
    return to_local(dt, tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """00:00:00 of ``day`` in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    """23:59:59 of ``day`` in ``tz``."""
    return datetime.combine(day, time(23, 59, 59), tzinfo=tz)


def monday_of(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


# =============================================================================
# PARSING
# =============================================================================

def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime value to a UTC datetime.

    Accepts datetime objects, ISO 8601 strings (with or without offset or 'Z'),
    and "YYYY-MM-DD HH:MM:SS".

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(value))
    except ValueError:
        pass

    try:
        return datetime.strptime(value, DISPLAY_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValueError(f"Cannot parse datetime: '{value}'")


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD date, passing None and date objects through.

    Raises:
        ValueError: If the string is not a valid date.
    """
    if value is None or isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


# =============================================================================
# FORMATTING
# =============================================================================

def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with UTC timezone.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_local(dt: datetime, tz: tzinfo) -> str:
    """Format a datetime as "YYYY-MM-DD HH:MM:SS" in the reporting timezone."""
    return to_local(dt, tz).strftime(DISPLAY_FORMAT)
