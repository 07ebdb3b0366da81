"""
Teacher feedback aggregation and output row building.
"""

from .columns import COLUMN_COUNT, TARGET_COLUMNS
from .row_builder import OutputRowBuilder
from .teacher_feedback import TeacherFeedbackAggregator, map_period

__all__ = [
    "COLUMN_COUNT",
    "TARGET_COLUMNS",
    "OutputRowBuilder",
    "TeacherFeedbackAggregator",
    "map_period",
]
