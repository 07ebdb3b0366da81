"""
Sync pipeline orchestration.

Coordinates one full source-to-target run:
target check → read published rows → load sources → resolve + merge →
eligibility → teacher feedback + row building → upsert → metrics
"""

import time
from datetime import date
from typing import Any, Optional, Protocol

from transition_sync.config.settings import TENTATIVE_SOURCE, SyncSettings
from transition_sync.core.eligibility import EligibilityFilter
from transition_sync.core.merge import JoinMergeEngine
from transition_sync.core.models import (
    BuiltRow,
    KeyedCollection,
    PersistedRow,
    RunSummary,
    UnifiedStudentRecord,
)
from transition_sync.core.rows import OutputRowBuilder, TeacherFeedbackAggregator
from transition_sync.core.rows.columns import row_to_record
from transition_sync.observability.logger import get_logger, log_operation
from transition_sync.observability.metrics import MetricsCollector
from transition_sync.warehouse.target_table import TargetTableAccessor
from transition_sync.warehouse.upsert import UpsertMaterializer

logger = get_logger(__name__)


class SourceLoader(Protocol):
    """What the pipeline needs from a source loader."""

    def load_source(self, name: str) -> KeyedCollection: ...

    def lookup_backup_placement_days(self, student_key: int) -> Optional[int]: ...

    def lookup_backup_record(self, student_key: int) -> dict[str, Any]: ...


def published_collection(rows: list[PersistedRow]) -> dict[int, dict[str, str]]:
    """
    Published rows as the resolved tentative slot.

    A key published more than once contributes its first row, the same row
    the upsert updates.
    """
    collection: dict[int, dict[str, str]] = {}
    for row in rows:
        if row.student_key is not None and row.student_key not in collection:
            collection[row.student_key] = row_to_record(row.cells)
    return collection


class SyncPipeline:
    """
    Runs the student record merge and synchronization.

    Example:
        pipeline = SyncPipeline(settings, SourceDatasetLoader(spark, settings), target)
        summary = pipeline.run_merge()
    """

    def __init__(
        self,
        settings: SyncSettings,
        loader: SourceLoader,
        target: TargetTableAccessor,
        today: Optional[date] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Validated sync settings
            loader: Source dataset loader
            target: Target table accessor
            today: Run date (defaults to the current date)
            metrics: Metrics collector (a default one is created when omitted)
        """
        self.settings = settings
        self.loader = loader
        self.target = target
        self.today = today or date.today()
        self.metrics = metrics or MetricsCollector(table_name=settings.target.table_name)

        self.engine = JoinMergeEngine()
        self.eligibility = EligibilityFilter.from_settings(settings)
        self.aggregator = TeacherFeedbackAggregator(
            teachers=settings.teachers,
            schedule_source=settings.schedule_source,
            tentative_source=TENTATIVE_SOURCE,
        )
        self.builder = OutputRowBuilder(
            holidays=settings.holidays,
            today=self.today,
            notice_offset=settings.calendar.early_notice_workdays,
            placement_days_lookup=loader.lookup_backup_placement_days,
            backup_record_lookup=loader.lookup_backup_record,
            tentative_source=TENTATIVE_SOURCE,
            schedule_source=settings.schedule_source,
            withdrawal_date_field=settings.withdrawal_date_field,
        )
        self.materializer = UpsertMaterializer(target)

    def run_merge(self, dry_run: bool = False) -> RunSummary:
        """
        Execute one full run.

        Args:
            dry_run: Plan without writing to the target table

        Returns:
            RunSummary of the run

        Raises:
            TargetTableError: If the target table is missing (before any write)
        """
        start_time = time.time()
        try:
            summary = self._run(dry_run)
        except Exception:
            self.metrics.record_run(dry_run=dry_run, success=False, duration_seconds=time.time() - start_time)
            raise

        duration = time.time() - start_time
        self.metrics.record_run(
            dry_run=dry_run,
            success=True,
            duration_seconds=duration,
            students_processed=summary.students_processed,
            rows_updated=summary.rows_updated,
            rows_inserted=summary.rows_inserted,
            error_rows=summary.error_rows,
            duplicate_key_count=len(summary.duplicate_keys),
        )
        logger.info(
            f"Sync complete: {summary.students_processed} students, {summary.rows_written} rows written",
            extra={"duration_seconds": round(duration, 3), **summary.model_dump()},
        )
        return summary

    def _run(self, dry_run: bool) -> RunSummary:
        self.target.require_exists()

        with log_operation("Reading target table", logger=logger):
            persisted = self.target.read_all_rows()

        with log_operation("Loading sources", logger=logger):
            keyed = {
                config.name: self.loader.load_source(config.name)
                for config in self.settings.merged_sources
            }
        for name, collection in keyed.items():
            self.metrics.record_source_loaded(name, sum(len(records) for records in collection.values()))

        with log_operation("Merging sources", logger=logger):
            resolved: dict[str, dict[int, Any]] = {TENTATIVE_SOURCE: published_collection(persisted)}
            for config in self.settings.merged_sources:
                resolved[config.name] = self.engine.resolve(config, keyed[config.name])
            unified = self.engine.merge(resolved)

        kept, report = self.eligibility.apply(unified)
        self.metrics.record_eligibility(report.counts())

        with log_operation("Building rows", logger=logger, students=len(kept)):
            built = [self.build_row(record) for record in kept.values()]
        error_rows = sum(1 for row in built if row.is_error)

        with log_operation("Materializing rows", logger=logger, dry_run=dry_run):
            plan = self.materializer.plan(built, persisted)
            updated, inserted = self.materializer.apply(plan, dry_run=dry_run)
            duplicates = plan.duplicate_keys if dry_run else self.materializer.scan_duplicates()

        return RunSummary(
            students_processed=len(built),
            rows_written=updated + inserted,
            duplicate_keys=duplicates,
            rows_updated=updated if not dry_run else len(plan.updates),
            rows_inserted=inserted if not dry_run else len(plan.inserts),
            rows_preserved=len(plan.preserved),
            error_rows=error_rows,
            excluded_withdrawn=report.removed_count,
            excluded_other=report.excluded_other_count,
            reinstated=report.reinstated_count,
            dry_run=dry_run,
        )

    def build_row(self, record: UnifiedStudentRecord) -> BuiltRow:
        """Aggregate feedback and build one row; failures become error rows."""
        try:
            feedback = self.aggregator.aggregate(record)
        except Exception as e:
            logger.error(
                f"Error aggregating teacher feedback for student {record.student_key}: {e}",
                extra={"student_key": record.student_key, "error_type": type(e).__name__},
                exc_info=True,
            )
            return self.builder.error_row(record.student_key, str(e), record.record(TENTATIVE_SOURCE))
        return self.builder.build(record, feedback)
