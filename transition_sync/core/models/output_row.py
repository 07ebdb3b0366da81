"""
BuiltRow model: one flat row destined for the target table.
"""

from pydantic import BaseModel, Field

from .derived_dates import DerivedDateFields


class BuiltRow(BaseModel):
    """
    A row produced by the output row builder.

    Attributes:
        student_key: Student the row belongs to
        cells: Column values in target column order
        is_error: True when the row is an error marker row
        error_message: Failure reason for error rows
        derived: Date fields computed while building the row
    """

    student_key: int
    cells: list[str]
    is_error: bool = False
    error_message: str | None = None
    derived: DerivedDateFields = Field(default_factory=DerivedDateFields)

    def sort_key(self, last_name_index: int = 1, first_name_index: int = 2) -> tuple[str, str, int]:
        """Case-insensitive (last name, first name, key) ordering."""
        return (
            self.cells[last_name_index].casefold(),
            self.cells[first_name_index].casefold(),
            self.student_key,
        )
