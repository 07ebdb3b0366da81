"""
Business-calendar date projection.

A business day is a calendar day that is neither a Saturday, a Sunday nor a
listed holiday. All functions are pure; holidays are passed in as data.

Workday counting rule: the start day never counts. add_workdays walks forward
one calendar day at a time and returns the day on which the n-th business day
is reached.
"""

from collections.abc import Collection
from datetime import date, datetime, timedelta
from typing import Any, Optional

from transition_sync.core.models import DerivedDateFields
from transition_sync.utils.validation import parse_int

DEFAULT_EARLY_NOTICE_WORKDAYS = 10

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a cell value into a date.

    Returns None for blanks and anything that does not match a known format.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_mmddyyyy(value: Any) -> Optional[str]:
    """Format a date-like value as MM/DD/YYYY, or None when unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.strftime("%m/%d/%Y")


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_holiday(day: date, holidays: Collection) -> bool:
    """Whether the day's YYYY-MM-DD form is in the holiday collection."""
    return day.isoformat() in holidays


def is_business_day(day: date, holidays: Collection = ()) -> bool:
    return not is_weekend(day) and not is_holiday(day, holidays)


def add_workdays(start: Any, n: int, holidays: Collection = ()) -> Optional[date]:
    """
    Advance start by n business days.

    The start day itself never counts. With n == 0 the start day is returned
    when it is a business day, otherwise the next business day.

    Args:
        start: Start date (date, datetime or date string)
        n: Number of business days to add
        holidays: Holiday dates in YYYY-MM-DD form

    Returns:
        The landing date, or None when start is an unparseable string

    Raises:
        ValueError: If start is None or n is negative
    """
    if start is None:
        raise ValueError("start date is required")
    if n < 0:
        raise ValueError(f"number of workdays must be non-negative, got {n}")

    current = parse_date(start)
    if current is None:
        return None

    if n == 0:
        while not is_business_day(current, holidays):
            current += timedelta(days=1)
        return current

    counted = 0
    while counted < n:
        current += timedelta(days=1)
        if is_business_day(current, holidays):
            counted += 1
    return current


def projected_exit(entry: Any, placement_days: Any, holidays: Collection = ()) -> Optional[date]:
    """Projected exit date: entry plus placement_days business days."""
    days = parse_int(placement_days)
    if entry is None or days is None or days < 0:
        return None
    return add_workdays(entry, days, holidays)


def business_days_between(start: Any, end: Any, holidays: Collection = ()) -> Optional[int]:
    """Count business days strictly between start and end."""
    first = parse_date(start)
    last = parse_date(end)
    if first is None or last is None:
        return None

    count = 0
    current = first + timedelta(days=1)
    while current < last:
        if is_business_day(current, holidays):
            count += 1
        current += timedelta(days=1)
    return count


def days_left(
    entry: Any,
    placement_days: Any,
    holidays: Collection = (),
    today: Optional[date] = None,
) -> Optional[int]:
    """
    Business days remaining before the projected exit.

    Returns 0 once today reaches the projected exit, None on invalid input.
    """
    exit_date = projected_exit(entry, placement_days, holidays)
    if exit_date is None:
        return None

    today = today or date.today()
    if today >= exit_date:
        return 0
    return business_days_between(today, exit_date, holidays)


def early_notice(
    entry: Any,
    offset: int = DEFAULT_EARLY_NOTICE_WORKDAYS,
    holidays: Collection = (),
) -> Optional[date]:
    """Parent notice date: entry plus offset business days."""
    if entry is None or offset < 0:
        return None
    return add_workdays(entry, offset, holidays)


def derive_dates(
    entry: Any,
    placement_days: Any,
    holidays: Collection = (),
    today: Optional[date] = None,
    notice_offset: int = DEFAULT_EARLY_NOTICE_WORKDAYS,
) -> DerivedDateFields:
    """
    Compute every derived placement date for one student.

    Invalid inputs give None fields; this never raises.
    """
    entry_date = parse_date(entry)
    if entry_date is None:
        return DerivedDateFields()

    return DerivedDateFields(
        entry_date=entry_date,
        early_notice_date=early_notice(entry_date, notice_offset, holidays),
        projected_exit_date=projected_exit(entry_date, placement_days, holidays),
        days_remaining=days_left(entry_date, placement_days, holidays, today),
    )
