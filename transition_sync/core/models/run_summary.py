"""
RunSummary model returned by a full sync run.
"""

from pydantic import BaseModel, Field


class RunSummary(BaseModel):
    """
    Outcome of one source-to-target run.

    Attributes:
        students_processed: Students that reached the row builder
        rows_written: Rows updated plus rows inserted
        duplicate_keys: Keys occurring more than once in the target after the write
        rows_updated: Rows overwritten in place
        rows_inserted: Rows appended
        rows_preserved: Persisted rows left untouched
        error_rows: Students emitted as error rows
        excluded_withdrawn: Students excluded as withdrawn
        excluded_other: Students excluded for lack of enrollment evidence
        reinstated: Withdrawn students kept because of active schedule entries
        dry_run: Whether writes were skipped
    """

    students_processed: int = 0
    rows_written: int = 0
    duplicate_keys: list[int] = Field(default_factory=list)
    rows_updated: int = 0
    rows_inserted: int = 0
    rows_preserved: int = 0
    error_rows: int = 0
    excluded_withdrawn: int = 0
    excluded_other: int = 0
    reinstated: int = 0
    dry_run: bool = False
