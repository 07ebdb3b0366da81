"""
Unit tests for the output row builder.
"""

from datetime import date

import pytest

from transition_sync.core.rows import COLUMN_COUNT, OutputRowBuilder, TeacherFeedbackAggregator
from transition_sync.core.rows.columns import (
    COLUMN_INDEX,
    COLUMN_SCHEMA_VERSION,
    COURSE_TITLE,
    STUDENT_ID_INDEX,
    TARGET_COLUMNS,
    period_column,
    row_to_record,
)
from transition_sync.core.rows.row_builder import first_non_empty, flag, is_error_marker, split_full_name


@pytest.fixture
def builder(sync_settings, run_date):
    return OutputRowBuilder(
        holidays=sync_settings.holidays,
        today=run_date,
        notice_offset=sync_settings.calendar.early_notice_workdays,
        placement_days_lookup=lambda key: 30 if key == 222222 else None,
        backup_record_lookup=lambda key: {"Home Campus": "Backup High"} if key == 222222 else {},
    )


@pytest.fixture
def aggregator(sync_settings):
    return TeacherFeedbackAggregator(teachers=sync_settings.teachers)


def build(builder, aggregator, record):
    return builder.build(record, aggregator.aggregate(record))


def cell(row, column):
    return row.cells[COLUMN_INDEX[column]]


@pytest.mark.unit
class TestColumnContract:
    """Tests for the fixed column order"""

    def test_width_and_key_position(self):
        assert COLUMN_SCHEMA_VERSION == 2
        assert COLUMN_COUNT == 83
        assert len(set(TARGET_COLUMNS)) == COLUMN_COUNT
        assert TARGET_COLUMNS[STUDENT_ID_INDEX] == "STUDENT ID"
        assert TARGET_COLUMNS[:5] == ("DATE ADDED TO SPREADSHEET", "LAST", "FIRST", "STUDENT ID", "GRADE")
        assert TARGET_COLUMNS[5] == "1st Period - Course Title"
        assert TARGET_COLUMNS[-1] == "Document Merge Status - Transition Letter"

    def test_row_to_record_pads(self):
        record = row_to_record(["11/04/2024", "Doe"])
        assert record["LAST"] == "Doe"
        assert record["FIRST"] == ""
        assert len(record) == COLUMN_COUNT


@pytest.mark.unit
class TestHelpers:
    """Tests for row builder helpers"""

    def test_first_non_empty(self):
        assert first_non_empty(None, "  ", "b", "c") == "b"
        assert first_non_empty(None, "") == ""
        assert first_non_empty(12.0) == "12"

    def test_split_full_name(self):
        assert split_full_name("Doe, Jane") == ("Doe", "Jane")
        assert split_full_name("Doe,  Jane Ann") == ("Doe", "Jane Ann")
        assert split_full_name("Jane") == ("", "")
        assert split_full_name(None) == ("", "")

    def test_flag(self):
        assert flag("504, ESL", "504") == "Yes"
        assert flag("ESL", "504") == "No"
        assert flag(None, "ESL") == "No"


@pytest.mark.unit
class TestBuild:
    """Tests for OutputRowBuilder.build"""

    def test_new_student_row(self, builder, aggregator, make_record, run_date):
        record = make_record(
            123456,
            entry_withdrawal={"Student Name(Last, First)": "Doe, Jane", "Grd Lvl": "10", "Entry Date": "11/04/2024"},
            registrations={
                "Home Campus": "North High",
                "Placement Days": "20",
                "Educational Factors": "504; ESL",
                "Eligibility": "Yes",
                "Behavior Contract": "Signed",
            },
            contacts={
                "Student Email": "jdoe@students.example.org",
                "Parent Name": "John Doe",
                "Guardian 1 Email": "john@example.org",
            },
            schedules=[{"Per Beg": "1", COURSE_TITLE: "English I", "Teacher Name": "Doe, Jane", "Wdraw Date": ""}],
        )

        row = build(builder, aggregator, record)

        assert not row.is_error
        assert len(row.cells) == COLUMN_COUNT
        assert cell(row, "DATE ADDED TO SPREADSHEET") == "11/04/2024"
        assert cell(row, "LAST") == "Doe"
        assert cell(row, "FIRST") == "Jane"
        assert cell(row, "STUDENT ID") == "123456"
        assert cell(row, "GRADE") == "10"
        assert cell(row, "REGULAR CAMPUS") == "North High"
        assert cell(row, "FIRST DAY OF AEP") == "11/04/2024"
        assert cell(row, "Anticipated Release Date") == "12/04/2024"
        assert cell(row, "Parent Notice Date") == "11/18/2024"
        assert cell(row, "COMPASS") == "Yes"
        assert cell(row, "Behavior Contract") == "Signed"
        assert cell(row, "Sect 504") == "Yes"
        assert cell(row, "ESL") == "Yes"
        assert cell(row, "StudentEmail") == "jdoe@students.example.org"
        assert cell(row, "Guardian Name") == "John Doe"
        assert cell(row, "Guardian Email") == "john@example.org"
        assert cell(row, period_column("1st", COURSE_TITLE)) == "English I"
        assert row.derived.days_remaining == 19
        assert all(isinstance(value, str) for value in row.cells)

    def test_published_values_take_precedence(self, builder, aggregator, make_record, make_cells):
        published = row_to_record(make_cells(**{
            "DATE ADDED TO SPREADSHEET": "10/01/2024",
            "LAST": "Doe-Smith",
            "FIRST": "Jane",
            "STUDENT ID": "123456",
            "Campus Mentor": "Mr. Lee",
            "Merged Doc URL - Transition Letter": "https://docs.example.org/d/1",
        }))
        record = make_record(
            123456,
            tentative=published,
            entry_withdrawal={"Student Name(Last, First)": "Doe, Jane"},
        )

        row = build(builder, aggregator, record)

        assert cell(row, "DATE ADDED TO SPREADSHEET") == "10/01/2024"
        assert cell(row, "LAST") == "Doe-Smith"
        assert cell(row, "Campus Mentor") == "Mr. Lee"
        assert cell(row, "Merged Doc URL - Transition Letter") == "https://docs.example.org/d/1"

    def test_backup_lookups(self, builder, aggregator, make_record):
        record = make_record(222222, entry_withdrawal={"Entry Date": "11/04/2024"})

        row = build(builder, aggregator, record)

        assert cell(row, "REGULAR CAMPUS") == "Backup High"
        assert cell(row, "Anticipated Release Date") != ""
        assert cell(row, "Sect 504") == "No"

    def test_entry_date_from_active_schedule(self, builder, make_record):
        record = make_record(
            123456,
            schedules=[
                {"Entry Date": "10/01/2024", "Wdraw Date": ""},
                {"Entry Date": "10/21/2024", "Wdraw Date": ""},
                {"Entry Date": "10/28/2024", "Wdraw Date": "10/30/2024"},
            ],
        )

        assert builder.resolve_entry_date(record) == (date(2024, 10, 21), "10/21/2024")

    def test_entry_date_missing(self, builder, aggregator, make_record):
        row = build(builder, aggregator, make_record(123456, registrations={"Placement Days": "20"}))

        assert cell(row, "FIRST DAY OF AEP") == ""
        assert cell(row, "Anticipated Release Date") == ""
        assert cell(row, "Parent Notice Date") == ""

    def test_failure_becomes_error_row(self, builder, make_record, run_date):
        """Test a failure while building yields a full-width error row"""
        row = builder.build(make_record(123456), feedback={})

        assert row.is_error
        assert len(row.cells) == COLUMN_COUNT
        assert row.cells[:4] == ["11/04/2024", "ERROR", "ERROR", "123456"]
        assert row.cells[4].startswith("Error: ")
        assert all(value == "" for value in row.cells[5:])

    def test_error_row_keeps_published_cells(self, builder, make_record, make_cells):
        published = row_to_record(make_cells(**{
            "DATE ADDED TO SPREADSHEET": "10/01/2024",
            "LAST": "Doe",
            "FIRST": "Jane",
            "STUDENT ID": "123456",
            "GRADE": "10",
            "Campus Mentor": "Mr. Lee",
        }))

        row = builder.build(make_record(123456, tentative=published), feedback={})

        assert row.is_error
        assert row.cells[:4] == ["10/01/2024", "ERROR", "ERROR", "123456"]
        assert row.cells[4].startswith("Error: ")
        assert cell(row, "Campus Mentor") == "Mr. Lee"

    def test_published_error_row_is_not_an_identity_source(self, builder, aggregator, make_record, make_cells):
        published = row_to_record(make_cells(**{
            "DATE ADDED TO SPREADSHEET": "10/01/2024",
            "LAST": "ERROR",
            "FIRST": "ERROR",
            "STUDENT ID": "123456",
            "GRADE": "Error: bad form data",
            "Campus Mentor": "Mr. Lee",
        }))
        record = make_record(
            123456,
            tentative=published,
            entry_withdrawal={"Student Name(Last, First)": "Doe, Jane", "Grd Lvl": "10"},
        )

        row = build(builder, aggregator, record)

        assert not row.is_error
        assert cell(row, "LAST") == "Doe"
        assert cell(row, "FIRST") == "Jane"
        assert cell(row, "GRADE") == "10"
        assert cell(row, "Campus Mentor") == "Mr. Lee"
        assert cell(row, "DATE ADDED TO SPREADSHEET") == "10/01/2024"

    def test_is_error_marker(self):
        assert is_error_marker({"LAST": "ERROR"})
        assert is_error_marker({"LAST": "Doe", "GRADE": "Error: boom"})
        assert not is_error_marker({"LAST": "Doe", "GRADE": "10"})
        assert not is_error_marker({})
