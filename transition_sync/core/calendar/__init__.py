"""
Business-calendar date projection.
"""

from .business_days import (
    DEFAULT_EARLY_NOTICE_WORKDAYS,
    add_workdays,
    business_days_between,
    days_left,
    derive_dates,
    early_notice,
    format_mmddyyyy,
    is_business_day,
    is_holiday,
    is_weekend,
    parse_date,
    projected_exit,
)
from .holidays import HolidayCalendar, canonical_day

__all__ = [
    "DEFAULT_EARLY_NOTICE_WORKDAYS",
    "HolidayCalendar",
    "canonical_day",
    "parse_date",
    "format_mmddyyyy",
    "is_weekend",
    "is_holiday",
    "is_business_day",
    "add_workdays",
    "projected_exit",
    "business_days_between",
    "days_left",
    "early_notice",
    "derive_dates",
]
