"""
Unit tests for teacher feedback aggregation.
"""

import pytest

from transition_sync.core.rows.columns import (
    ACADEMIC_GROWTH,
    ACCOMMODATIONS,
    CASE_MANAGER,
    COURSE_TITLE,
    PROGRESS_NOTES,
    SPECIAL_EDUCATION,
    TEACHER_NAME,
    period_column,
)
from transition_sync.core.rows.teacher_feedback import (
    UNKNOWN_TEACHER,
    TeacherFeedbackAggregator,
    empty_feedback,
    map_period,
)


@pytest.fixture
def aggregator(sync_settings):
    return TeacherFeedbackAggregator(teachers=sync_settings.teachers)


def schedule(period, course, teacher, withdrawn=""):
    return {"Per Beg": period, COURSE_TITLE: course, TEACHER_NAME: teacher, "Wdraw Date": withdrawn}


def response(email, timestamp, **fields):
    return {"Email Address": email, "Timestamp": timestamp, **fields}


@pytest.mark.unit
class TestMapPeriod:
    """Tests for period label mapping"""

    @pytest.mark.parametrize("value, expected", [
        ("1", "1st"), (3, "3rd"), ("8", "8th"), ("2nd Period", "2nd"), ("04", "4th"),
    ])
    def test_valid(self, value, expected):
        assert map_period(value) == expected

    @pytest.mark.parametrize("value", [None, "", "Advisory", "0", "9", True])
    def test_invalid(self, value):
        assert map_period(value) is None


@pytest.mark.unit
class TestResolveTeacher:
    """Tests for submitter e-mail resolution"""

    def test_known_email_case_insensitive(self, aggregator):
        assert aggregator.resolve_teacher({"Email Address": " Jane.Doe@Example.org "}) == "Doe, Jane"

    def test_unknown_email(self, aggregator):
        assert aggregator.resolve_teacher({"Email Address": "nobody@example.org"}) == UNKNOWN_TEACHER
        assert aggregator.resolve_teacher({}) == UNKNOWN_TEACHER


@pytest.mark.unit
class TestAggregate:
    """Tests for the three-layer feedback aggregation"""

    def test_empty_record(self, aggregator, make_record):
        assert aggregator.aggregate(make_record(123456)) == empty_feedback()

    def test_schedule_fills_course_and_teacher(self, aggregator, make_record):
        record = make_record(123456, schedules=[schedule("1", "English I", "Doe, Jane")])

        feedback = aggregator.aggregate(record)

        assert feedback["1st"][COURSE_TITLE] == "English I"
        assert feedback["1st"][TEACHER_NAME] == "Doe, Jane"
        assert feedback["2nd"][COURSE_TITLE] == ""

    def test_case_manager_entry(self, aggregator, make_record):
        record = make_record(123456, schedules=[schedule("7", "Case Management", "Rivera, Sam")])

        feedback = aggregator.aggregate(record)

        assert feedback[SPECIAL_EDUCATION][CASE_MANAGER] == "Rivera, Sam"
        assert feedback["7th"][COURSE_TITLE] == "Case Management"

    def test_keeps_most_recent_submission(self, aggregator, make_record):
        """Test a teacher's later submission wins over an earlier one"""
        record = make_record(
            123456,
            schedules=[schedule("1", "English I", "Doe, Jane")],
            form_responses=[
                response("jane.doe@example.org", "10/01/2024 08:00:00", **{PROGRESS_NOTES: "older"}),
                response("jane.doe@example.org", "10/15/2024 08:00:00", **{PROGRESS_NOTES: "newer"}),
            ],
        )

        feedback = aggregator.aggregate(record)

        assert feedback["1st"][PROGRESS_NOTES] == "newer"

    def test_response_with_explicit_period(self, aggregator, make_record):
        record = make_record(
            123456,
            form_responses=[
                response("sam.rivera@example.org", "10/01/2024 08:00:00", **{
                    "Per Beg": "3", ACADEMIC_GROWTH: "Significant growth",
                }),
            ],
        )

        assert aggregator.aggregate(record)["3rd"][ACADEMIC_GROWTH] == "Significant growth"

    def test_case_manager_response_fills_special_education(self, aggregator, make_record):
        record = make_record(
            123456,
            schedules=[schedule("", "Case Management", "Rivera, Sam")],
            form_responses=[
                response("sam.rivera@example.org", "10/01/2024 08:00:00", **{ACCOMMODATIONS: "Extra time"}),
            ],
        )

        feedback = aggregator.aggregate(record)

        assert feedback[SPECIAL_EDUCATION][ACCOMMODATIONS] == "Extra time"

    def test_unplaceable_response_is_skipped(self, aggregator, make_record):
        record = make_record(
            123456,
            form_responses=[response("nobody@example.org", "10/01/2024", **{PROGRESS_NOTES: "lost"})],
        )

        feedback = aggregator.aggregate(record)

        assert all(feedback[p][PROGRESS_NOTES] == "" for p in ("1st", "2nd", "3rd"))

    def test_published_row_fills_gaps_only(self, aggregator, make_record):
        record = make_record(
            123456,
            schedules=[schedule("1", "English I", "Doe, Jane")],
            tentative={
                period_column("1st", COURSE_TITLE): "Old English",
                period_column("1st", PROGRESS_NOTES): "Published note",
                period_column("2nd", COURSE_TITLE): "Algebra I",
            },
        )

        feedback = aggregator.aggregate(record)

        assert feedback["1st"][COURSE_TITLE] == "English I"
        assert feedback["1st"][PROGRESS_NOTES] == "Published note"
        assert feedback["2nd"][COURSE_TITLE] == "Algebra I"
