"""
Holiday calendar injected into the business-day functions.
"""

from collections.abc import Iterable
from datetime import date, datetime


def canonical_day(value: date | str) -> str:
    """Return the canonical YYYY-MM-DD form of a date."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value).strip()).isoformat()


class HolidayCalendar:
    """
    Immutable set of non-instructional days.

    Membership accepts dates or ISO strings:

        >>> calendar = HolidayCalendar(["2024-11-28"])
        >>> date(2024, 11, 28) in calendar
        True
    """

    def __init__(self, holidays: Iterable[date | str] = ()):
        self._days = frozenset(canonical_day(day) for day in holidays)

    @classmethod
    def from_settings(cls, settings) -> "HolidayCalendar":
        """Build the calendar from SyncSettings."""
        return cls(settings.calendar.holidays)

    def __contains__(self, day: object) -> bool:
        if isinstance(day, (date, str)):
            try:
                return canonical_day(day) in self._days
            except ValueError:
                return False
        return False

    def __iter__(self):
        return iter(sorted(self._days))

    def __len__(self) -> int:
        return len(self._days)

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self._days)} days)"
