"""Calendar date helpers.

All calendar arithmetic works on plain ``datetime.date`` values. Dates are never
routed through a timezone-aware instant, so a day can't drift across a
midnight boundary.
"""

import logging
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from typing import Union

from dateutil.relativedelta import relativedelta

from ..core.exceptions import InvalidRangeError

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

DAYS_IN_WEEK = 7


def to_calendar_date(value: DateLike) -> date:
    """Coerce a date or ``yyyy-MM-dd`` string to a ``date``.

    Datetimes are truncated to their calendar day without timezone conversion.

    Raises:
        ValueError: If the string is not an ISO calendar date
        TypeError: If value is neither a date nor a string
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Tolerate a trailing time component ("2025-01-06T00:00:00")
        if "T" in text:
            text = text.split("T", 1)[0]
        return date.fromisoformat(text)
    raise TypeError(f"Expected date or ISO date string, got {type(value).__name__}")


def format_calendar_date(value: DateLike) -> str:
    """Return the canonical ``yyyy-MM-dd`` text form."""
    return to_calendar_date(value).isoformat()


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_months(value: date, months: int) -> date:
    """Add months, clamping the day to the last valid day of the target month."""
    return value + relativedelta(months=months)


def add_years(value: date, years: int) -> date:
    """Add years; Feb 29 lands on Feb 28 in non-leap years."""
    return value + relativedelta(years=years)


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end."""
    return (end - start).days


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (ignores days)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def day_index_in_week(value: date) -> int:
    """Position of the day in a Monday-start week (Monday=0 .. Sunday=6)."""
    return value.weekday()


def start_of_week(value: date) -> date:
    """Monday on or before the given day."""
    return value - timedelta(days=value.weekday())


def end_of_week(value: date) -> date:
    """Sunday on or after the given day."""
    return value + timedelta(days=6 - value.weekday())


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return start_of_month(value) + relativedelta(months=1, days=-1)


def month_key(value: date) -> str:
    """``yyyy-MM`` grouping key."""
    return f"{value.year:04d}-{value.month:02d}"


def ensure_range(start: date, end: date) -> None:
    """Raise InvalidRangeError when end precedes start."""
    if end < start:
        raise InvalidRangeError(
            f"Range end {end.isoformat()} precedes range start {start.isoformat()}"
        )


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end inclusive.

    Raises:
        InvalidRangeError: If end precedes start
    """
    ensure_range(start, end)
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """True when two inclusive day ranges share at least one day."""
    return start_a <= end_b and end_a >= start_b
