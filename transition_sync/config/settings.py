"""
Sync configuration management.

Loads the source declarations, holiday calendar, teacher directory and
target table settings from a YAML file and validates them with Pydantic.
"""

from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from transition_sync.core.errors import ConfigError
from transition_sync.core.models import SourceDatasetConfig
from transition_sync.core.rows.columns import STUDENT_ID_INDEX

# The published table is fed back into the merge under this slot name
TENTATIVE_SOURCE = "tentative"


class CalendarSettings(BaseModel):
    """
    Business calendar settings.

    Attributes:
        holidays: Non-instructional dates as ISO YYYY-MM-DD strings
        early_notice_workdays: Business days from entry to the parent notice date
    """

    holidays: list[str] = Field(default_factory=list)
    early_notice_workdays: int = Field(default=10, ge=0)

    @field_validator("holidays", mode="before")
    @classmethod
    def check_iso_dates(cls, v):
        """Holidays must be canonical ISO dates; YAML dates are normalized."""
        normalized = []
        for value in v or []:
            if isinstance(value, date):
                value = value.isoformat()
            try:
                date.fromisoformat(str(value))
            except ValueError as e:
                raise ValueError(f"Holiday '{value}' is not a YYYY-MM-DD date") from e
            normalized.append(str(value))
        return normalized


class TargetSettings(BaseModel):
    """
    Target table settings.

    Attributes:
        table_name: PostgreSQL table holding the published rows
        key_column_index: 0-based index of the student key column
    """

    table_name: str = Field(default="tentative_rows", pattern=r"^[a-zA-Z_][a-zA-Z0-9_]*$")
    key_column_index: int = Field(default=STUDENT_ID_INDEX, ge=0)

    @field_validator("key_column_index")
    @classmethod
    def check_key_column(cls, v: int) -> int:
        """Must match the column the row builder writes the key to."""
        if v != STUDENT_ID_INDEX:
            raise ValueError(
                f"key_column_index must be {STUDENT_ID_INDEX} (the STUDENT ID column), got {v}"
            )
        return v


class SyncSettings(BaseModel):
    """
    Root configuration for a sync run.

    Attributes:
        data_dir: Base directory for relative source paths
        sources: Source name -> dataset declaration
        calendar: Holiday calendar and notice offset
        teachers: Submitter e-mail -> teacher display name ("Last, First")
        target: Target table settings
        enrollment_sources: Slots whose presence counts as enrollment evidence
        schedule_source: Slot checked by the re-enrollment override
        withdrawal_date_field: Schedule field marking a withdrawn course entry
    """

    data_dir: str | None = None
    sources: dict[str, SourceDatasetConfig] = Field(default_factory=dict)
    calendar: CalendarSettings = Field(default_factory=CalendarSettings)
    teachers: dict[str, str] = Field(default_factory=dict)
    target: TargetSettings = Field(default_factory=TargetSettings)
    enrollment_sources: list[str] = Field(
        default_factory=lambda: [TENTATIVE_SOURCE, "entry_withdrawal", "registrations", "schedules"]
    )
    schedule_source: str = "schedules"
    withdrawal_date_field: str = "Wdraw Date"

    @field_validator("teachers")
    @classmethod
    def normalize_emails(cls, v: dict[str, str]) -> dict[str, str]:
        return {email.strip().lower(): name.strip() for email, name in v.items()}

    @model_validator(mode="after")
    def check_sources(self):
        if TENTATIVE_SOURCE in self.sources:
            raise ValueError(f"Source name '{TENTATIVE_SOURCE}' is reserved for the target table")
        for name, source in self.sources.items():
            if source.name != name:
                raise ValueError(f"Source '{name}' declares a different name '{source.name}'")
        return self

    def sources_by_role(self, role: str) -> list[SourceDatasetConfig]:
        return [source for source in self.sources.values() if source.role == role]

    @property
    def merged_sources(self) -> list[SourceDatasetConfig]:
        """Sources taking part in the key union (data and withdrawal roles)."""
        return [source for source in self.sources.values() if source.role != "backup"]

    @property
    def withdrawal_sources(self) -> list[str]:
        return [source.name for source in self.sources_by_role("withdrawal")]

    @property
    def holidays(self) -> frozenset[str]:
        return frozenset(self.calendar.holidays)

    def resolve_path(self, path: str) -> Path:
        """Resolve a source path against data_dir when it is relative."""
        candidate = Path(path)
        if candidate.is_absolute() or not self.data_dir:
            return candidate
        return Path(self.data_dir) / candidate

    class Config:
        json_schema_extra = {
            "example": {
                "data_dir": "data",
                "sources": {
                    "registrations": {
                        "name": "registrations",
                        "path": "registrations.csv",
                        "key_column": "STUDENT ID",
                        "latest_by": "Start Date"
                    }
                },
                "calendar": {"holidays": ["2024-11-28"], "early_notice_workdays": 10},
                "teachers": {"jane.doe@example.org": "Doe, Jane"},
                "target": {"table_name": "tentative_rows"}
            }
        }


class SyncConfigLoader:
    """
    Loads sync settings from a YAML configuration file.

    Expected YAML format:
    ```yaml
    data_dir: data
    sources:
      registrations:
        path: registrations.csv
        key_column: STUDENT ID
        latest_by: Start Date
      schedules:
        path: schedules.csv
        key_column: STUDENT ID
        multiplicity: multi
        exclude_when_present: Wdraw Date
      withdrawn:
        path: withdrawn.csv
        key_column: STUDENT ID
        role: withdrawal
    calendar:
      early_notice_workdays: 10
      holidays:
        - 2024-11-28
    teachers:
      jane.doe@example.org: Doe, Jane
    target:
      table_name: tentative_rows
    ```

    Source names are taken from the mapping keys. A relative data_dir is
    resolved against the directory holding the configuration file.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the sync config loader.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            ConfigError: If the file does not exist
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise ConfigError(f"Sync configuration file not found: {config_path}")

    def load(self) -> SyncSettings:
        """
        Load and validate the configuration.

        Returns:
            Validated SyncSettings

        Raises:
            ConfigError: If the YAML is invalid or fails validation
        """
        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file {self.config_path} must contain a mapping")

        return self.parse(config)

    def parse(self, config: dict[str, Any]) -> SyncSettings:
        """Validate a configuration mapping read from this file."""
        return parse_settings(config, base_dir=self.config_path.parent, origin=str(self.config_path))


def parse_settings(
    config: dict[str, Any],
    base_dir: Path | None = None,
    origin: str = "configuration",
) -> SyncSettings:
    """
    Validate a configuration mapping.

    Args:
        config: Parsed YAML document
        base_dir: Directory a relative data_dir resolves against
        origin: Description of the document for error messages

    Returns:
        Validated SyncSettings

    Raises:
        ConfigError: If validation fails
    """
    sources = config.get("sources") or {}
    if not isinstance(sources, dict):
        raise ConfigError("'sources' must be a mapping of source name to declaration")

    document = dict(config)
    document["sources"] = {
        name: {"name": name, **(declaration or {})}
        for name, declaration in sources.items()
    }

    data_dir = document.get("data_dir")
    if data_dir and base_dir is not None and not Path(data_dir).is_absolute():
        document["data_dir"] = str(Path(base_dir) / data_dir)

    try:
        return SyncSettings.model_validate(document)
    except ValidationError as e:
        raise ConfigError(f"Invalid sync configuration in {origin}: {e}") from e
