"""
Exception hierarchy for the sync engine.
"""


class SyncError(Exception):
    """Base class for all sync errors."""


class ConfigError(SyncError):
    """Raised when the sync configuration file is missing or invalid."""


class SourceAccessError(SyncError):
    """Raised when a source dataset cannot be read."""

    def __init__(self, source_name: str, message: str):
        self.source_name = source_name
        self.message = message
        super().__init__(f"[{source_name}] {message}")


class TargetTableError(SyncError):
    """Raised when the target table is missing or unusable. Fatal for a run."""


class RowBuildError(SyncError):
    """Raised when a single student's output row cannot be built."""

    def __init__(self, student_key: int | None, message: str):
        self.student_key = student_key
        self.message = message
        super().__init__(f"Student {student_key}: {message}")
