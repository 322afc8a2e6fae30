"""Date utilities shared by the task store, storage, and CLI.

Deadlines and reminder dates are calendar dates without a time component,
so everything here works on ``datetime.date`` values.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def today() -> date:
    """Return the current local date."""
    return date.today()


def now_utc() -> datetime:
    """Return current datetime in UTC timezone."""
    return datetime.now(timezone.utc)


def parse_date(value: Optional[str], date_format: Optional[str] = None) -> Optional[date]:
    """Parse a date string.

    Args:
        value: Date string, or None/empty
        date_format: Optional strptime format; ISO (YYYY-MM-DD) when omitted

    Returns:
        The parsed date, or None if value was empty

    Raises:
        ValueError: If the string cannot be parsed
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if date_format:
        return datetime.strptime(value, date_format).date()
    return date.fromisoformat(value)


def to_iso_date(value: Optional[date]) -> Optional[str]:
    """Convert a date to an ISO string, passing None through."""
    if value is None:
        return None
    return value.isoformat()


def subtract_months(value: date, months: int) -> date:
    """Go back a number of calendar months.

    The day is clamped to the last day of the target month, so
    2025-03-31 minus one month is 2025-02-28.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))
