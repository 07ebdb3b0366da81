"""
Source dataset loader.

Reads each declared source snapshot with Spark and turns it into a keyed
collection. A missing, empty or unreadable source never fails the run: it
contributes an empty collection and a warning.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pyspark.errors import AnalysisException
from pyspark.sql import SparkSession

from transition_sync.config.settings import SyncSettings
from transition_sync.core.errors import ConfigError, SourceAccessError
from transition_sync.core.merge import JoinMergeEngine, group_by_key
from transition_sync.core.models import KeyedCollection, SourceDatasetConfig
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import parse_int

from .file_reader import FileReader

logger = get_logger(__name__)

PLACEMENT_DAYS_FIELD = "Placement Days"


class BackupPlacementLookup:
    """
    Point lookups into a backup registration table.

    Args:
        records: Student key -> resolved backup registration record
        placement_field: Field holding the placement-day count
    """

    def __init__(self, records: Mapping[int, Mapping[str, Any]], placement_field: str = PLACEMENT_DAYS_FIELD):
        self.records = records
        self.placement_field = placement_field

    def record(self, student_key: int) -> Mapping[str, Any]:
        return self.records.get(student_key) or {}

    def placement_days(self, student_key: int) -> Optional[int]:
        """Placement days for the key; None when absent or non-numeric."""
        return parse_int(self.record(student_key).get(self.placement_field))

    def __len__(self) -> int:
        return len(self.records)


class SourceDatasetLoader:
    """
    Loads the sources declared in SyncSettings.

    Example:
        loader = SourceDatasetLoader(spark, settings)
        schedules = loader.load_source("schedules")
        days = loader.lookup_backup_placement_days(123456)
    """

    def __init__(self, spark: SparkSession, settings: SyncSettings):
        """
        Initialize the loader.

        Args:
            spark: Active Spark session
            settings: Validated sync settings
        """
        self.spark = spark
        self.settings = settings
        self.reader = FileReader(spark)
        self._backup: Optional[BackupPlacementLookup] = None

    def _config(self, name: str) -> SourceDatasetConfig:
        try:
            return self.settings.sources[name]
        except KeyError:
            raise ConfigError(f"Source '{name}' is not declared in the sync configuration") from None

    def read_records(self, config: SourceDatasetConfig) -> list[dict[str, Any]]:
        """
        Read one source into header-keyed records.

        Raises:
            SourceAccessError: If the source has no path, cannot be read or
                lacks its key column
        """
        if not config.path:
            raise SourceAccessError(config.name, "no path configured")

        path = str(self.settings.resolve_path(config.path))
        try:
            df = self.reader.read(path, config.file_format)
        except AnalysisException as e:
            raise SourceAccessError(config.name, f"cannot read {path}: {e}") from e

        if config.key_column not in df.columns:
            raise SourceAccessError(
                config.name,
                f"key column '{config.key_column}' not found in {path}",
            )

        return FileReader.to_records(df)

    def load_source(self, name: str) -> KeyedCollection:
        """
        Load one source as a keyed collection.

        Args:
            name: Declared source name

        Returns:
            Student key -> records in file order; {} when the source is
            missing, empty or unreadable

        Raises:
            ConfigError: If the source is not declared
        """
        config = self._config(name)

        try:
            records = self.read_records(config)
        except SourceAccessError as e:
            level = logger.error if config.required else logger.warning
            level(
                f"Source {name} unavailable, using empty collection: {e.message}",
                extra={"source": name, "required": config.required},
            )
            return {}

        if not records:
            logger.warning(f"Source {name} is empty", extra={"source": name})
            return {}

        keyed = group_by_key(records, config.key_column, name)
        logger.info(
            f"Loaded {name}: {len(records)} records, {len(keyed)} students",
            extra={"source": name, "record_count": len(records), "key_count": len(keyed)},
        )
        return keyed

    @property
    def backup_lookup(self) -> BackupPlacementLookup:
        """Lookup over all backup-role sources, loaded on first use."""
        if self._backup is None:
            engine = JoinMergeEngine()
            records: dict[int, Any] = {}
            for config in self.settings.sources_by_role("backup"):
                resolved = engine.resolve(config, self.load_source(config.name))
                for key, value in resolved.items():
                    if key not in records:
                        records[key] = value[0] if isinstance(value, list) else value
            self._backup = BackupPlacementLookup(records)
        return self._backup

    def lookup_backup_placement_days(self, student_key: int) -> Optional[int]:
        """Placement days for a student from the backup registrations."""
        return self.backup_lookup.placement_days(student_key)

    def lookup_backup_record(self, student_key: int) -> Mapping[str, Any]:
        return self.backup_lookup.record(student_key)
