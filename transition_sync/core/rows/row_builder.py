"""
Output row builder.

Projects a unified student record plus its teacher feedback onto the fixed
target column order. Every field is resolved through a fallback chain where
the first non-empty value wins. A failure while building one student never
aborts the batch: the student gets an error row of the same width instead.
"""

from collections.abc import Callable, Collection, Mapping
from datetime import date
from typing import Any, Optional

from transition_sync.core.calendar import (
    DEFAULT_EARLY_NOTICE_WORKDAYS,
    derive_dates,
    format_mmddyyyy,
    parse_date,
)
from transition_sync.core.errors import RowBuildError
from transition_sync.core.models import BuiltRow, UnifiedStudentRecord
from transition_sync.core.rows import columns as c
from transition_sync.core.rows.teacher_feedback import TeacherFeedback
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import clean_cell, extract_student_key, is_blank, parse_int

logger = get_logger(__name__)

# Registration form headers
REG_FIRST_NAME = "Student First Name"
REG_LAST_NAME = "Student Last Name"
REG_GRADE = "Grd Lvl"
REG_HOME_CAMPUS = "Home Campus"
REG_PLACEMENT_DAYS = "Placement Days"
REG_EDUCATIONAL_FACTORS = "Educational Factors"
REG_ELIGIBILITY = "Eligibility"
REG_BEHAVIOR_CONTRACT = "Behavior Contract"

# Entry/withdrawal roster headers
EW_FULL_NAME = "Student Name(Last, First)"
EW_GRADE_FIELDS = ("Grd Lvl", "Grade")
ENTRY_DATE = "Entry Date"

# Contact directory headers
CONTACT_STUDENT_EMAIL = "Student Email"
CONTACT_PARENT_NAME = "Parent Name"
CONTACT_GUARDIAN_EMAIL = "Guardian 1 Email"

ERROR_MARKER = "ERROR"
ERROR_PREFIX = "Error:"


def is_error_marker(published: Mapping[str, Any]) -> bool:
    """True when a published row was written as an error row."""
    return (
        clean_cell(published.get(c.LAST)) == ERROR_MARKER
        or clean_cell(published.get(c.GRADE)).startswith(ERROR_PREFIX)
    )


def first_non_empty(*values: Any) -> str:
    """First value that is not blank, as a cell string ("" when none)."""
    for value in values:
        if not is_blank(value):
            return clean_cell(value)
    return ""


def split_full_name(full_name: Any) -> tuple[str, str]:
    """
    Split a "Last, First" name into (last, first).

        >>> split_full_name("Doe, Jane")
        ('Doe', 'Jane')
    """
    if is_blank(full_name) or "," not in str(full_name):
        return "", ""
    last, first = str(full_name).split(",", 1)
    return last.strip(), first.strip()


def flag(value: Any, marker: str) -> str:
    """'Yes' when marker occurs in the value, else 'No'."""
    return "Yes" if marker in clean_cell(value) else "No"


class OutputRowBuilder:
    """
    Builds target rows for unified student records.

    Args:
        holidays: Holiday dates in YYYY-MM-DD form
        today: Run date used for new rows and error rows
        notice_offset: Business days from entry to the parent notice date
        placement_days_lookup: Point lookup into the backup registrations
        backup_record_lookup: Backup registration record for a key
        tentative_source: Slot holding the student's published row
    """

    def __init__(
        self,
        holidays: Collection = (),
        today: Optional[date] = None,
        notice_offset: int = DEFAULT_EARLY_NOTICE_WORKDAYS,
        placement_days_lookup: Optional[Callable[[int], Optional[int]]] = None,
        backup_record_lookup: Optional[Callable[[int], Mapping[str, Any]]] = None,
        tentative_source: str = "tentative",
        registrations_source: str = "registrations",
        entry_withdrawal_source: str = "entry_withdrawal",
        schedule_source: str = "schedules",
        contacts_source: str = "contacts",
        withdrawal_date_field: str = "Wdraw Date",
    ):
        self.holidays = holidays
        self.today = today or date.today()
        self.notice_offset = notice_offset
        self.placement_days_lookup = placement_days_lookup
        self.backup_record_lookup = backup_record_lookup
        self.tentative_source = tentative_source
        self.registrations_source = registrations_source
        self.entry_withdrawal_source = entry_withdrawal_source
        self.schedule_source = schedule_source
        self.contacts_source = contacts_source
        self.withdrawal_date_field = withdrawal_date_field

    def build(self, record: UnifiedStudentRecord, feedback: TeacherFeedback) -> BuiltRow:
        """
        Build one student's row, converting any failure into an error row.

        Args:
            record: Unified student record
            feedback: Aggregated teacher feedback for the student

        Returns:
            BuiltRow with COLUMN_COUNT cells
        """
        try:
            return self._build(record, feedback)
        except Exception as e:
            logger.error(
                f"Error building row for student {record.student_key}: {e}",
                extra={"student_key": record.student_key, "error_type": type(e).__name__},
                exc_info=True,
            )
            return self.error_row(record.student_key, str(e), record.record(self.tentative_source))

    def error_row(
        self,
        student_key: int,
        message: str,
        published: Optional[Mapping[str, Any]] = None,
    ) -> BuiltRow:
        """
        Error marker row: [date added, ERROR, ERROR, key, 'Error: <reason>', ...].

        Only the marker columns are replaced. Every other cell keeps the
        student's published value, and the date added is today only for a
        student with no published row.
        """
        published = published or {}
        cells = [clean_cell(published.get(column)) for column in c.TARGET_COLUMNS]
        cells[c.DATE_ADDED_INDEX] = self._date_added(published)
        cells[c.LAST_INDEX] = ERROR_MARKER
        cells[c.FIRST_INDEX] = ERROR_MARKER
        cells[c.STUDENT_ID_INDEX] = str(student_key)
        cells[c.GRADE_INDEX] = f"{ERROR_PREFIX} {message}"
        return BuiltRow(student_key=student_key, cells=cells, is_error=True, error_message=message)

    def _date_added(self, published: Mapping[str, Any]) -> str:
        published_added = published.get(c.DATE_ADDED)
        return first_non_empty(
            format_mmddyyyy(published_added) or published_added,
            format_mmddyyyy(self.today),
        )

    def resolve_entry_date(self, record: UnifiedStudentRecord) -> tuple[Optional[date], str]:
        """
        Placement entry date and its cell value.

        Chain: entry/withdrawal roster -> most recent entry date among active
        schedule entries -> published first-day column.
        """
        roster_value = record.record(self.entry_withdrawal_source).get(ENTRY_DATE)
        published_value = record.record(self.tentative_source).get(c.FIRST_DAY)

        schedule_date = None
        for entry in record.records(self.schedule_source):
            if not is_blank(entry.get(self.withdrawal_date_field)):
                continue
            parsed = parse_date(entry.get(ENTRY_DATE))
            if parsed is not None and (schedule_date is None or parsed > schedule_date):
                schedule_date = parsed

        for candidate in (roster_value, schedule_date, published_value):
            parsed = parse_date(candidate)
            if parsed is not None:
                return parsed, format_mmddyyyy(parsed)

        return None, first_non_empty(roster_value, published_value)

    def resolve_placement_days(self, record: UnifiedStudentRecord) -> Optional[int]:
        """Placement days from registrations, else the backup registrations."""
        days = parse_int(record.record(self.registrations_source).get(REG_PLACEMENT_DAYS))
        if days is None and self.placement_days_lookup is not None:
            days = self.placement_days_lookup(record.student_key)
        return days

    def _backup_record(self, student_key: int) -> Mapping[str, Any]:
        if self.backup_record_lookup is None:
            return {}
        return self.backup_record_lookup(student_key) or {}

    def _build(self, record: UnifiedStudentRecord, feedback: TeacherFeedback) -> BuiltRow:
        key = record.student_key
        published = record.record(self.tentative_source)
        roster = record.record(self.entry_withdrawal_source)
        registration = record.record(self.registrations_source)
        contact = record.record(self.contacts_source)
        backup = self._backup_record(key)

        roster_last, roster_first = split_full_name(roster.get(EW_FULL_NAME))

        entry_date, entry_cell = self.resolve_entry_date(record)
        placement_days = self.resolve_placement_days(record)
        derived = derive_dates(entry_date, placement_days, self.holidays, self.today, self.notice_offset)

        educational_factors = first_non_empty(
            registration.get(REG_EDUCATIONAL_FACTORS),
            backup.get(REG_EDUCATIONAL_FACTORS),
        )

        # An earlier error row still carries staff columns but not identity
        identity = {} if is_error_marker(published) else published

        cells = dict.fromkeys(c.TARGET_COLUMNS, "")

        cells[c.DATE_ADDED] = self._date_added(published)
        cells[c.LAST] = first_non_empty(identity.get(c.LAST), roster_last, registration.get(REG_LAST_NAME))
        cells[c.FIRST] = first_non_empty(identity.get(c.FIRST), roster_first, registration.get(REG_FIRST_NAME))
        cells[c.STUDENT_ID] = str(key)
        cells[c.GRADE] = first_non_empty(
            identity.get(c.GRADE),
            *(roster.get(field) for field in EW_GRADE_FIELDS),
            registration.get(REG_GRADE),
        )

        for period in c.PERIODS:
            for field in c.PERIOD_FIELDS:
                cells[c.period_column(period, field)] = clean_cell(feedback[period][field])
        for field in c.SPECIAL_EDUCATION_FIELDS:
            cells[c.special_education_column(field)] = clean_cell(feedback[c.SPECIAL_EDUCATION][field])

        cells[c.REGULAR_CAMPUS] = first_non_empty(
            registration.get(REG_HOME_CAMPUS),
            backup.get(REG_HOME_CAMPUS),
            published.get(c.REGULAR_CAMPUS),
        )
        cells[c.FIRST_DAY] = entry_cell
        cells[c.ANTICIPATED_RELEASE] = format_mmddyyyy(derived.projected_exit_date) or ""
        cells[c.PARENT_NOTICE] = format_mmddyyyy(derived.early_notice_date) or ""
        cells[c.COMPASS] = first_non_empty(registration.get(REG_ELIGIBILITY), published.get(c.COMPASS))
        cells[c.BEHAVIOR_CONTRACT] = first_non_empty(
            registration.get(REG_BEHAVIOR_CONTRACT),
            published.get(c.BEHAVIOR_CONTRACT),
        )
        cells[c.SECT_504] = flag(educational_factors, "504")
        cells[c.ESL] = flag(educational_factors, "ESL")

        cells[c.STUDENT_EMAIL] = first_non_empty(
            contact.get(CONTACT_STUDENT_EMAIL), published.get(c.STUDENT_EMAIL)
        )
        cells[c.GUARDIAN_NAME] = first_non_empty(
            contact.get(CONTACT_PARENT_NAME), published.get(c.GUARDIAN_NAME)
        )
        cells[c.GUARDIAN_EMAIL] = first_non_empty(
            contact.get(CONTACT_GUARDIAN_EMAIL), published.get(c.GUARDIAN_EMAIL)
        )

        for column in c.STAFF_MAINTAINED_COLUMNS:
            cells[column] = first_non_empty(published.get(column))

        row = list(cells.values())
        if extract_student_key(row[c.STUDENT_ID_INDEX]) != key:
            raise RowBuildError(key, "student key column does not round-trip")

        return BuiltRow(student_key=key, cells=row, derived=derived)
