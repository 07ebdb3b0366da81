"""
DerivedDateFields model: computed placement dates for one student.
"""

from datetime import date

from pydantic import BaseModel


class DerivedDateFields(BaseModel):
    """
    Business-calendar dates computed from the placement entry date.

    Any field is None when its inputs were missing or unparseable.

    Attributes:
        entry_date: Placement entry date
        early_notice_date: Entry date plus the notice offset in business days
        projected_exit_date: Entry date plus placement days in business days
        days_remaining: Business days left before the projected exit (>= 0)
    """

    entry_date: date | None = None
    early_notice_date: date | None = None
    projected_exit_date: date | None = None
    days_remaining: int | None = None
