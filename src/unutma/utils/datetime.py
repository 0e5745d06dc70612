"""Datetime utilities for local wall-clock handling.

All datetimes in unutma are naive and interpreted in the local zone of the
machine doing the inference. Calendar days travel between components as
``YYYY-MM-DD`` keys.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional


DATE_KEY_FORMAT = "%Y-%m-%d"


def now_local() -> datetime:
    """Return the current local wall-clock time, truncated to seconds."""
    return datetime.now().replace(microsecond=0)


def to_date_key(value: date) -> str:
    """Convert a date (or datetime) to its canonical ``YYYY-MM-DD`` key."""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DATE_KEY_FORMAT)


def from_date_key(key: str) -> date:
    """Parse a ``YYYY-MM-DD`` key back to a date.

    Raises:
        ValueError: if the key is not a valid date
    """
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO string, or None if input was None."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso_string(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO string produced by :func:`to_iso_string`."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def at_time(day: date, hour: int, minute: int = 0) -> datetime:
    """Return the instant ``hour:minute`` on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute)


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    month = day.month - 1 + months
    year = day.year + month // 12
    month = month % 12 + 1
    max_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, max_day))


def add_years(day: date, years: int) -> date:
    """Add calendar years; 29 February becomes 28 February on common years."""
    return add_months(day, years * 12)


def sunday_based_weekday(day: date) -> int:
    """Weekday index with Sunday = 0 and Saturday = 6."""
    return (day.weekday() + 1) % 7


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
