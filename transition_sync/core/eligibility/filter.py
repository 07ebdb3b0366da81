"""
Eligibility filter: withdrawn students are excluded unless an active
schedule entry shows they re-enrolled.

Runs after the merge so the schedule slot of each unified record is
populated before the re-enrollment override is evaluated.
"""

from collections.abc import Mapping, Sequence

from transition_sync.core.models import EligibilityDecision, EligibilityReport, UnifiedStudentRecord
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import is_blank

logger = get_logger(__name__)


class EligibilityFilter:
    """
    Decides, per student, whether the student belongs in the output.

    Decision order:
        1. Listed in any withdrawal dataset: reinstated when the schedule slot
           holds an entry with an empty withdrawal date, otherwise
           exclude-withdrawn.
        2. No record in any enrollment-evidence slot: exclude-other.
        3. Otherwise include.

    Args:
        withdrawal_sources: Slot names of the withdrawal datasets
        enrollment_sources: Slot names whose presence counts as enrollment
        schedule_source: Slot checked by the re-enrollment override
        withdrawal_date_field: Schedule field marking a withdrawn entry
    """

    def __init__(
        self,
        withdrawal_sources: Sequence[str],
        enrollment_sources: Sequence[str],
        schedule_source: str = "schedules",
        withdrawal_date_field: str = "Wdraw Date",
    ):
        self.withdrawal_sources = list(withdrawal_sources)
        self.enrollment_sources = list(enrollment_sources)
        self.schedule_source = schedule_source
        self.withdrawal_date_field = withdrawal_date_field

    @classmethod
    def from_settings(cls, settings) -> "EligibilityFilter":
        return cls(
            withdrawal_sources=settings.withdrawal_sources,
            enrollment_sources=settings.enrollment_sources,
            schedule_source=settings.schedule_source,
            withdrawal_date_field=settings.withdrawal_date_field,
        )

    def has_active_schedule(self, record: UnifiedStudentRecord) -> bool:
        """Whether any schedule entry has an empty withdrawal date."""
        return any(
            is_blank(entry.get(self.withdrawal_date_field))
            for entry in record.records(self.schedule_source)
        )

    def has_enrollment_evidence(self, record: UnifiedStudentRecord) -> bool:
        return any(record.has(name) for name in self.enrollment_sources)

    def decide(self, record: UnifiedStudentRecord) -> EligibilityDecision:
        """Eligibility decision for a single student."""
        if any(record.has(name) for name in self.withdrawal_sources):
            if self.has_active_schedule(record):
                return EligibilityDecision.REINSTATED
            return EligibilityDecision.EXCLUDE_WITHDRAWN

        if not self.has_enrollment_evidence(record):
            return EligibilityDecision.EXCLUDE_OTHER

        return EligibilityDecision.INCLUDE

    def apply(
        self,
        records: Mapping[int, UnifiedStudentRecord],
    ) -> tuple[dict[int, UnifiedStudentRecord], EligibilityReport]:
        """
        Filter the unified record set.

        Withdrawal datasets are applied one after the other. A student listed
        in several of them is decided on the first and counted once.

        Args:
            records: Key -> unified record

        Returns:
            (kept records in input order, eligibility report)
        """
        report = EligibilityReport()

        for source in self.withdrawal_sources:
            removed = reinstated = 0
            for key, record in records.items():
                if key in report.decisions or not record.has(source):
                    continue
                decision = self.decide(record)
                report.decisions[key] = decision
                if decision == EligibilityDecision.REINSTATED:
                    reinstated += 1
                else:
                    removed += 1
            logger.info(
                f"Withdrawal filter {source}: {removed} removed, {reinstated} reinstated",
                extra={"source": source, "removed": removed, "reinstated": reinstated},
            )

        for key, record in records.items():
            if key not in report.decisions:
                report.decisions[key] = self.decide(record)

        kept = {
            key: record
            for key, record in records.items()
            if report.decisions[key].is_included
        }

        if report.excluded_other_count:
            logger.info(
                f"Excluded {report.excluded_other_count} students without enrollment records",
                extra={"excluded_other": report.excluded_other_count},
            )
        logger.info(
            f"Eligibility: {len(kept)} of {len(records)} students kept",
            extra={
                "kept": len(kept),
                "removed": report.removed_count,
                "reinstated": report.reinstated_count,
                "excluded_other": report.excluded_other_count,
            },
        )
        return kept, report
