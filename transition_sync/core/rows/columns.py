"""
Target table column contract.

The column order below is persisted. Changing it is a breaking change for
every published table and requires bumping COLUMN_SCHEMA_VERSION together
with the row builder's field mapping.
"""

COLUMN_SCHEMA_VERSION = 2

PERIODS = ("1st", "2nd", "3rd", "4th", "5th", "6th", "7th", "8th")
SPECIAL_EDUCATION = "Special Education"

# Per-period feedback fields
COURSE_TITLE = "Course Title"
TEACHER_NAME = "Teacher Name"
TRANSFER_GRADE = "Transfer Grade"
CURRENT_GRADE = "Current Grade"
ACADEMIC_GROWTH = "How would you assess this student's academic growth?"
PROGRESS_NOTES = "Academic and Behavioral Progress Notes"

PERIOD_FIELDS = (
    COURSE_TITLE,
    TEACHER_NAME,
    TRANSFER_GRADE,
    CURRENT_GRADE,
    ACADEMIC_GROWTH,
    PROGRESS_NOTES,
)

# Special education fields
CASE_MANAGER = "Case Manager"
ACCOMMODATIONS = "What accommodations seem to work well with this student to help them be successful?"
BEHAVIOR_STRENGTHS = "What are the student's strengths, as far as behavior?"
BEHAVIOR_NEEDS = "What are the student's needs, as far as behavior?"
FUNCTIONAL_NEEDS = "What are the student's needs, as far as functional skills?"
OTHER_COMMENTS = "Please add any other comments or concerns here:"

SPECIAL_EDUCATION_FIELDS = (
    CASE_MANAGER,
    ACCOMMODATIONS,
    BEHAVIOR_STRENGTHS,
    BEHAVIOR_NEEDS,
    FUNCTIONAL_NEEDS,
    OTHER_COMMENTS,
)

# Identity columns
DATE_ADDED = "DATE ADDED TO SPREADSHEET"
LAST = "LAST"
FIRST = "FIRST"
STUDENT_ID = "STUDENT ID"
GRADE = "GRADE"

# Administrative columns
REGULAR_CAMPUS = "REGULAR CAMPUS"
FIRST_DAY = "FIRST DAY OF AEP"
ANTICIPATED_RELEASE = "Anticipated Release Date"
PARENT_NOTICE = "Parent Notice Date"
WITHDRAWN_DATE = "Withdrawn Date"
ATTENDANCE_RECOVERY = "Attendance Recovery"
COMPASS = "COMPASS"
CREDIT_RETRIEVAL = "Credit Retrieval"
BEHAVIOR_CONTRACT = "Behavior Contract"
CAMPUS_MENTOR = "Campus Mentor"
OTHER_INTERVENTION_1 = "Other Intervention 1"
OTHER_INTERVENTION_2 = "Other Intervention 2"
SECT_504 = "Sect 504"
ESL = "ESL"
COUNSELING_NOTES = "Additional notes or counseling services and Support"
SOCIAL_WORKER = "Licensed social worker consultation"
TRANSITION_LETTER_READY = "Check if you're ready to create Transition Letter with Autocrat"

# Contact columns
STUDENT_EMAIL = "StudentEmail"
GUARDIAN_NAME = "Guardian Name"
GUARDIAN_EMAIL = "Guardian Email"

# Document merge columns
DOCUMENT_MERGE_COLUMNS = (
    "Merged Doc ID - Transition Letter",
    "Merged Doc URL - Transition Letter",
    "Link to merged Doc - Transition Letter",
    "Document Merge Status - Transition Letter",
)

ADMINISTRATIVE_COLUMNS = (
    REGULAR_CAMPUS,
    FIRST_DAY,
    ANTICIPATED_RELEASE,
    PARENT_NOTICE,
    WITHDRAWN_DATE,
    ATTENDANCE_RECOVERY,
    COMPASS,
    CREDIT_RETRIEVAL,
    BEHAVIOR_CONTRACT,
    CAMPUS_MENTOR,
    OTHER_INTERVENTION_1,
    OTHER_INTERVENTION_2,
    SECT_504,
    ESL,
    COUNSELING_NOTES,
    SOCIAL_WORKER,
    TRANSITION_LETTER_READY,
)

# Columns only staff edit; the builder carries their published value forward
STAFF_MAINTAINED_COLUMNS = (
    WITHDRAWN_DATE,
    ATTENDANCE_RECOVERY,
    CREDIT_RETRIEVAL,
    CAMPUS_MENTOR,
    OTHER_INTERVENTION_1,
    OTHER_INTERVENTION_2,
    COUNSELING_NOTES,
    SOCIAL_WORKER,
    TRANSITION_LETTER_READY,
) + DOCUMENT_MERGE_COLUMNS


def period_column(period: str, field: str) -> str:
    """Header of one period feedback column, e.g. '1st Period - Course Title'."""
    return f"{period} Period - {field}"


def special_education_column(field: str) -> str:
    if field == CASE_MANAGER:
        return "SE - Special Education Case Manager"
    return f"SE - {field}"


TARGET_COLUMNS: tuple[str, ...] = (
    (DATE_ADDED, LAST, FIRST, STUDENT_ID, GRADE)
    + tuple(period_column(period, field) for period in PERIODS for field in PERIOD_FIELDS)
    + tuple(special_education_column(field) for field in SPECIAL_EDUCATION_FIELDS)
    + ADMINISTRATIVE_COLUMNS
    + (STUDENT_EMAIL, GUARDIAN_NAME, GUARDIAN_EMAIL)
    + DOCUMENT_MERGE_COLUMNS
)

COLUMN_COUNT = len(TARGET_COLUMNS)
COLUMN_INDEX = {name: idx for idx, name in enumerate(TARGET_COLUMNS)}

DATE_ADDED_INDEX = COLUMN_INDEX[DATE_ADDED]
LAST_INDEX = COLUMN_INDEX[LAST]
FIRST_INDEX = COLUMN_INDEX[FIRST]
STUDENT_ID_INDEX = COLUMN_INDEX[STUDENT_ID]
GRADE_INDEX = COLUMN_INDEX[GRADE]


def row_to_record(cells: list[str]) -> dict[str, str]:
    """Map a stored row onto the target headers, padding short rows with ""."""
    return {
        name: cells[idx] if idx < len(cells) else ""
        for idx, name in enumerate(TARGET_COLUMNS)
    }
