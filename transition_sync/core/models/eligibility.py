"""
Eligibility decision models.
"""

from enum import Enum

from pydantic import BaseModel, Field


class EligibilityDecision(str, Enum):
    """Outcome of the eligibility filter for one student."""

    INCLUDE = "include"
    EXCLUDE_WITHDRAWN = "exclude-withdrawn"
    EXCLUDE_OTHER = "exclude-other"
    REINSTATED = "reinstated"

    @property
    def is_included(self) -> bool:
        return self in (EligibilityDecision.INCLUDE, EligibilityDecision.REINSTATED)


class EligibilityReport(BaseModel):
    """
    Per-run eligibility outcome (diagnostic only, never persisted).

    Attributes:
        decisions: Student key -> decision
    """

    decisions: dict[int, EligibilityDecision] = Field(default_factory=dict)

    def count(self, decision: EligibilityDecision) -> int:
        return sum(1 for d in self.decisions.values() if d == decision)

    @property
    def removed_count(self) -> int:
        return self.count(EligibilityDecision.EXCLUDE_WITHDRAWN)

    @property
    def reinstated_count(self) -> int:
        return self.count(EligibilityDecision.REINSTATED)

    @property
    def excluded_other_count(self) -> int:
        return self.count(EligibilityDecision.EXCLUDE_OTHER)

    def counts(self) -> dict[str, int]:
        """Decision value -> count, for metrics."""
        return {decision.value: self.count(decision) for decision in EligibilityDecision}
