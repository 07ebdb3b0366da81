"""
SourceDatasetConfig model declaring how one named source is keyed and merged.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

# student key -> records in input order
KeyedCollection = dict[int, list[dict[str, str]]]


class SourceDatasetConfig(BaseModel):
    """
    Declaration of one named source dataset.

    Attributes:
        name: Slot name used in the unified record (e.g. "schedules")
        path: File location read by the loader (None for sources fed in code)
        file_format: "csv", "json" or "parquet"
        key_column: Header of the column holding the student identifier
        multiplicity: "single" keeps one record per key, "multi" keeps all
        latest_by: Date field used to keep the most recent record (single only)
        exclude_when_present: Rows with a non-empty value in this field are dropped
        role: "data" (merged slot), "withdrawal" (merged, drives the eligibility
            filter) or "backup" (point lookups only, never merged)
        required: Whether a missing file is logged as an error instead of a warning
    """

    name: str = Field(..., min_length=1, max_length=64)
    path: str | None = None
    file_format: Literal["csv", "json", "parquet"] = "csv"
    key_column: str = Field(..., min_length=1)
    multiplicity: Literal["single", "multi"] = "single"
    latest_by: str | None = None
    exclude_when_present: str | None = None
    role: Literal["data", "withdrawal", "backup"] = "data"
    required: bool = False

    @field_validator("latest_by")
    @classmethod
    def check_latest_by_single(cls, v, info):
        """The most-recent conflict rule only applies to single-valued slots."""
        if v and info.data.get("multiplicity") == "multi":
            raise ValueError("latest_by can only be used with multiplicity 'single'")
        return v

    @property
    def is_multi(self) -> bool:
        return self.multiplicity == "multi"

    class Config:
        json_schema_extra = {
            "example": {
                "name": "schedules",
                "path": "data/schedules.csv",
                "file_format": "csv",
                "key_column": "STUDENT ID",
                "multiplicity": "multi",
                "exclude_when_present": "Wdraw Date",
                "role": "data"
            }
        }
