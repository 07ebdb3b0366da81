"""
UnifiedStudentRecord model: the per-student merge of all source slots.
"""

from typing import Any

from pydantic import BaseModel, Field


class UnifiedStudentRecord(BaseModel):
    """
    One student's contribution from every merged source.

    Attributes:
        student_key: Canonical numeric student identifier
        slots: Source name -> record (single), list of records (multi) or None
    """

    student_key: int = Field(..., gt=0)
    slots: dict[str, Any] = Field(default_factory=dict)

    def set_slot(self, name: str, value: Any) -> None:
        """Overwrite one slot. Only the merge engine calls this."""
        self.slots[name] = value

    def has(self, name: str) -> bool:
        """Whether the slot holds at least one record."""
        value = self.slots.get(name)
        if value is None:
            return False
        if isinstance(value, list):
            return len(value) > 0
        return True

    def records(self, name: str) -> list[dict[str, Any]]:
        """All records of a slot as a list (empty when absent)."""
        value = self.slots.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def record(self, name: str) -> dict[str, Any]:
        """The first record of a slot, or an empty dict."""
        records = self.records(name)
        return records[0] if records else {}
