"""
Upsert materializer.

Reconciles freshly built rows with the persisted target table: rows whose
key is already published are updated in place (only when a cell changed),
new keys are appended, and every other persisted row is left untouched.
Re-running with unchanged inputs produces a plan of only preserve entries.
"""

from collections import Counter
from collections.abc import Sequence

from transition_sync.core.models import BuiltRow, MergeAction, MergePlan, MergePlanEntry, PersistedRow
from transition_sync.core.rows.columns import FIRST_INDEX, LAST_INDEX
from transition_sync.observability.logger import get_logger

from .target_table import TargetTableAccessor

logger = get_logger(__name__)


def find_duplicate_keys(rows: Sequence[PersistedRow]) -> list[int]:
    """Keys occurring more than once among rows, ascending."""
    counts = Counter(row.student_key for row in rows if row.student_key is not None)
    return sorted(key for key, count in counts.items() if count > 1)


def sort_rows(rows: Sequence[BuiltRow]) -> list[BuiltRow]:
    """Order rows by last name, first name (case-insensitive), then key."""
    return sorted(rows, key=lambda row: row.sort_key(LAST_INDEX, FIRST_INDEX))


class UpsertMaterializer:
    """
    Plans and applies row-level changes against a target table.

    Example:
        materializer = UpsertMaterializer(target)
        plan = materializer.plan(built_rows)
        updated, inserted = materializer.apply(plan)
        duplicates = materializer.scan_duplicates()
    """

    def __init__(self, target: TargetTableAccessor):
        """
        Initialize the materializer.

        Args:
            target: Target table accessor
        """
        self.target = target

    def plan(
        self,
        built_rows: Sequence[BuiltRow],
        persisted: Sequence[PersistedRow] | None = None,
    ) -> MergePlan:
        """
        Build the merge plan.

        Args:
            built_rows: Freshly built rows
            persisted: Current table rows (read from the target when omitted)

        Returns:
            MergePlan with one entry per built row followed by one preserve
            entry per untouched persisted row
        """
        if persisted is None:
            persisted = self.target.read_all_rows()

        index: dict[int, PersistedRow] = {}
        for row in persisted:
            if row.student_key is not None and row.student_key not in index:
                index[row.student_key] = row

        duplicates = find_duplicate_keys(persisted)
        if duplicates:
            logger.warning(
                f"Target table already holds {len(duplicates)} duplicate keys, updating first occurrence only",
                extra={"duplicate_keys": duplicates},
            )

        unique: dict[int, BuiltRow] = {}
        for row in built_rows:
            if row.student_key in unique:
                logger.warning(
                    f"Student {row.student_key} built more than once, keeping the last row",
                    extra={"student_key": row.student_key},
                )
            unique[row.student_key] = row

        plan = MergePlan(duplicate_keys=duplicates)
        targeted: set[int] = set()

        for row in sort_rows(list(unique.values())):
            existing = index.get(row.student_key)
            if existing is None:
                plan.entries.append(
                    MergePlanEntry(student_key=row.student_key, action=MergeAction.INSERT, cells=row.cells)
                )
                continue

            targeted.add(existing.position)
            if existing.cells == row.cells:
                plan.entries.append(
                    MergePlanEntry(
                        student_key=row.student_key,
                        action=MergeAction.PRESERVE,
                        position=existing.position,
                    )
                )
            else:
                plan.entries.append(
                    MergePlanEntry(
                        student_key=row.student_key,
                        action=MergeAction.UPDATE,
                        position=existing.position,
                        cells=row.cells,
                    )
                )

        for row in persisted:
            if row.position not in targeted:
                plan.entries.append(
                    MergePlanEntry(student_key=row.student_key, action=MergeAction.PRESERVE, position=row.position)
                )

        logger.info(
            f"Merge plan: {len(plan.updates)} updates, {len(plan.inserts)} inserts, "
            f"{len(plan.preserved)} preserved",
            extra={
                "updates": len(plan.updates),
                "inserts": len(plan.inserts),
                "preserved": len(plan.preserved),
            },
        )
        return plan

    def apply(self, plan: MergePlan, dry_run: bool = False) -> tuple[int, int]:
        """
        Write the plan: updates in one batch, inserts in one append.

        Args:
            plan: Plan from plan()
            dry_run: Skip all writes

        Returns:
            (rows updated, rows inserted); (0, 0) in dry-run mode
        """
        if dry_run:
            logger.info("Dry run, no rows written", extra={"dry_run": True})
            return 0, 0
        if plan.is_noop:
            logger.info("Target table already in sync, no rows written")
            return 0, 0

        updated = self.target.update_rows([(entry.position, entry.cells) for entry in plan.updates])
        inserted = self.target.append_rows([entry.cells for entry in plan.inserts])
        return updated, inserted

    def scan_duplicates(self) -> list[int]:
        """Re-read the table and report keys occurring more than once."""
        duplicates = find_duplicate_keys(self.target.read_all_rows())
        if duplicates:
            logger.warning(
                f"Duplicate student keys in target table: {duplicates}",
                extra={"duplicate_keys": duplicates},
            )
        return duplicates
