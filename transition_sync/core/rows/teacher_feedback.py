"""
Teacher feedback aggregation.

Builds the per-period feedback structure for one student from three layers,
each only filling or overlaying non-empty values:

1. schedule entries (course title and teacher name per period),
2. teacher form responses (most recent submission per teacher),
3. the student's published row (anything still empty).
"""

import re
from collections.abc import Mapping
from typing import Any, Optional

from transition_sync.core.merge import latest_record
from transition_sync.core.models import UnifiedStudentRecord
from transition_sync.core.rows.columns import (
    ACADEMIC_GROWTH,
    CASE_MANAGER,
    COURSE_TITLE,
    PERIOD_FIELDS,
    PERIODS,
    PROGRESS_NOTES,
    SPECIAL_EDUCATION,
    SPECIAL_EDUCATION_FIELDS,
    TEACHER_NAME,
    period_column,
    special_education_column,
)
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import is_blank

logger = get_logger(__name__)

UNKNOWN_TEACHER = "Unknown"
CASE_MANAGER_COURSE_PREFIX = "Case Manag"

# Form response headers
EMAIL_FIELD = "Email Address"
TIMESTAMP_FIELD = "Timestamp"
PERIOD_FIELD = "Per Beg"

TeacherFeedback = dict[str, dict[str, str]]


def map_period(value: Any) -> Optional[str]:
    """
    Map a schedule period value to its label.

        >>> map_period("3")
        '3rd'
        >>> map_period("2nd Period")
        '2nd'
        >>> map_period("Advisory") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    match = re.search(r"\d+", str(value))
    if not match:
        return None
    number = int(match.group())
    if 1 <= number <= len(PERIODS):
        return PERIODS[number - 1]
    return None


def empty_feedback() -> TeacherFeedback:
    feedback = {period: dict.fromkeys(PERIOD_FIELDS, "") for period in PERIODS}
    feedback[SPECIAL_EDUCATION] = dict.fromkeys(SPECIAL_EDUCATION_FIELDS, "")
    return feedback


class TeacherFeedbackAggregator:
    """
    Aggregates schedules, form responses and the published row into the
    period -> feedback structure consumed by the row builder.

    Args:
        teachers: Submitter e-mail (lower case) -> teacher display name
        schedule_source: Slot holding active schedule entries
        responses_source: Slot holding teacher form responses
        tentative_source: Slot holding the student's published row
    """

    def __init__(
        self,
        teachers: Mapping[str, str],
        schedule_source: str = "schedules",
        responses_source: str = "form_responses",
        tentative_source: str = "tentative",
    ):
        self.teachers = {email.strip().lower(): name for email, name in teachers.items()}
        self.schedule_source = schedule_source
        self.responses_source = responses_source
        self.tentative_source = tentative_source

    def resolve_teacher(self, response: Mapping[str, Any]) -> str:
        """Teacher display name for a response, from the submitter e-mail."""
        email = str(response.get(EMAIL_FIELD) or "").strip().lower()
        return self.teachers.get(email, UNKNOWN_TEACHER)

    def latest_per_teacher(self, responses: list[dict[str, Any]]) -> list[tuple[str, dict[str, Any]]]:
        """Keep each teacher's most recent submission, in first-seen order."""
        by_teacher: dict[str, list[dict[str, Any]]] = {}
        for response in responses:
            by_teacher.setdefault(self.resolve_teacher(response), []).append(response)

        latest = []
        for teacher, submissions in by_teacher.items():
            if len(submissions) > 1:
                logger.debug(
                    f"Found {len(submissions)} responses from teacher {teacher}, keeping the most recent",
                    extra={"teacher": teacher, "submissions": len(submissions)},
                )
            latest.append((teacher, latest_record(submissions, TIMESTAMP_FIELD)))
        return latest

    def aggregate(self, record: UnifiedStudentRecord) -> TeacherFeedback:
        """Build the feedback structure for one student."""
        feedback = empty_feedback()
        schedules = record.records(self.schedule_source)

        self._apply_schedules(feedback, schedules)
        self._apply_responses(feedback, record.records(self.responses_source), schedules, record.student_key)
        self._apply_published_row(feedback, record.record(self.tentative_source))
        return feedback

    def _apply_schedules(self, feedback: TeacherFeedback, schedules: list[dict[str, Any]]) -> None:
        for entry in schedules:
            course = str(entry.get(COURSE_TITLE) or "").strip()
            teacher = str(entry.get(TEACHER_NAME) or "").strip()

            if course.startswith(CASE_MANAGER_COURSE_PREFIX) and teacher:
                feedback[SPECIAL_EDUCATION][CASE_MANAGER] = teacher

            period = map_period(entry.get(PERIOD_FIELD))
            if period is None:
                continue
            if course:
                feedback[period][COURSE_TITLE] = course
            if teacher:
                feedback[period][TEACHER_NAME] = teacher

    def _apply_responses(
        self,
        feedback: TeacherFeedback,
        responses: list[dict[str, Any]],
        schedules: list[dict[str, Any]],
        student_key: int,
    ) -> None:
        for teacher, response in self.latest_per_teacher(responses):
            period = map_period(response.get(PERIOD_FIELD))
            if period is None:
                period = next(
                    (
                        map_period(entry.get(PERIOD_FIELD))
                        for entry in schedules
                        if str(entry.get(TEACHER_NAME) or "").strip() == teacher
                        and map_period(entry.get(PERIOD_FIELD))
                    ),
                    None,
                )

            if period is not None:
                for field in (ACADEMIC_GROWTH, PROGRESS_NOTES):
                    value = response.get(field)
                    if not is_blank(value):
                        feedback[period][field] = str(value).strip()
                continue

            if teacher != UNKNOWN_TEACHER and teacher == feedback[SPECIAL_EDUCATION][CASE_MANAGER]:
                for field in SPECIAL_EDUCATION_FIELDS[1:]:
                    value = response.get(field)
                    if not is_blank(value):
                        feedback[SPECIAL_EDUCATION][field] = str(value).strip()
                continue

            logger.warning(
                f"No period found for response from {teacher} on student {student_key}",
                extra={"teacher": teacher, "student_key": student_key},
            )

    def _apply_published_row(self, feedback: TeacherFeedback, published: Mapping[str, Any]) -> None:
        if not published:
            return
        for period in PERIODS:
            for field in PERIOD_FIELDS:
                if not feedback[period][field]:
                    feedback[period][field] = str(published.get(period_column(period, field)) or "").strip()
        for field in SPECIAL_EDUCATION_FIELDS:
            if not feedback[SPECIAL_EDUCATION][field]:
                feedback[SPECIAL_EDUCATION][field] = str(
                    published.get(special_education_column(field)) or ""
                ).strip()
