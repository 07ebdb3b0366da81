"""
Core data models for the student transition sync engine.

All models use Pydantic for runtime validation and type safety.
"""

from .derived_dates import DerivedDateFields
from .eligibility import EligibilityDecision, EligibilityReport
from .merge_plan import MergeAction, MergePlan, MergePlanEntry, PersistedRow
from .output_row import BuiltRow
from .run_summary import RunSummary
from .source_dataset import KeyedCollection, SourceDatasetConfig
from .unified_record import UnifiedStudentRecord

__all__ = [
    "SourceDatasetConfig",
    "KeyedCollection",
    "UnifiedStudentRecord",
    "EligibilityDecision",
    "EligibilityReport",
    "DerivedDateFields",
    "BuiltRow",
    "PersistedRow",
    "MergeAction",
    "MergePlanEntry",
    "MergePlan",
    "RunSummary",
]
