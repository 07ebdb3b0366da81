"""
MergePlan models describing how built rows reconcile with the target table.
"""

from enum import Enum

from pydantic import BaseModel, Field


class MergeAction(str, Enum):
    UPDATE = "update"
    INSERT = "insert"
    PRESERVE = "preserve"


class PersistedRow(BaseModel):
    """
    An existing target table row.

    Attributes:
        position: 1-based position within the table's data region
        cells: Stored column values
        student_key: Key read from the fixed key column (None when absent)
    """

    position: int = Field(..., gt=0)
    cells: list[str]
    student_key: int | None = None


class MergePlanEntry(BaseModel):
    """
    One reconciliation decision.

    Attributes:
        student_key: Student the decision applies to (None for keyless rows)
        action: update, insert or preserve
        position: Target row position for update/preserve
        cells: New cell values for update/insert
    """

    student_key: int | None
    action: MergeAction
    position: int | None = None
    cells: list[str] | None = None


class MergePlan(BaseModel):
    """
    Full set of reconciliation decisions for one run.

    Attributes:
        entries: Decisions in application order
        duplicate_keys: Keys occurring more than once among persisted rows
    """

    entries: list[MergePlanEntry] = Field(default_factory=list)
    duplicate_keys: list[int] = Field(default_factory=list)

    def _by_action(self, action: MergeAction) -> list[MergePlanEntry]:
        return [entry for entry in self.entries if entry.action == action]

    @property
    def updates(self) -> list[MergePlanEntry]:
        return self._by_action(MergeAction.UPDATE)

    @property
    def inserts(self) -> list[MergePlanEntry]:
        return self._by_action(MergeAction.INSERT)

    @property
    def preserved(self) -> list[MergePlanEntry]:
        return self._by_action(MergeAction.PRESERVE)

    @property
    def is_noop(self) -> bool:
        return not self.updates and not self.inserts
