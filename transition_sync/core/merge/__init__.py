"""
Keyed join/merge of source datasets.
"""

from .engine import JoinMergeEngine, group_by_key, latest_record
from .join import inner_join, left_join, set_difference

__all__ = [
    "JoinMergeEngine",
    "group_by_key",
    "latest_record",
    "inner_join",
    "left_join",
    "set_difference",
]
