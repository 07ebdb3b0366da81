"""
Join/Merge engine.

Turns raw records into keyed collections, applies each source's inclusion
predicate and multiplicity rule, and merges the resolved collections into
one UnifiedStudentRecord per student key.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from transition_sync.core.calendar import parse_date
from transition_sync.core.models import KeyedCollection, SourceDatasetConfig, UnifiedStudentRecord
from transition_sync.observability.logger import get_logger
from transition_sync.utils.validation import extract_student_key, is_blank

logger = get_logger(__name__)


def group_by_key(
    records: Iterable[dict[str, Any]],
    key_column: str,
    source_name: str = "unknown",
) -> KeyedCollection:
    """
    Group records by extracted student key, keeping input order.

    Records without a usable key are dropped with a warning.

    Args:
        records: Records keyed by header name
        key_column: Field holding the student identifier
        source_name: Source name for log context

    Returns:
        Keyed collection of records
    """
    keyed: KeyedCollection = {}
    dropped = 0

    # Row numbers count the header as row 1
    for row_number, record in enumerate(records, start=2):
        key = extract_student_key(record.get(key_column))
        if key is None:
            dropped += 1
            logger.warning(
                f"Dropping record without a student key in {source_name} row {row_number}",
                extra={
                    "source": source_name,
                    "row_number": row_number,
                    "key_value": str(record.get(key_column)),
                },
            )
            continue
        keyed.setdefault(key, []).append(record)

    if dropped:
        logger.info(
            f"Grouped {source_name}: {len(keyed)} keys, {dropped} records dropped",
            extra={"source": source_name, "key_count": len(keyed), "dropped": dropped},
        )
    return keyed


def latest_record(records: list[dict[str, Any]], date_field: str) -> Optional[dict[str, Any]]:
    """
    The record with the latest parseable date in date_field.

    Unparseable dates lose to any parseable one. Ties go to the last record
    in input order. With no parseable dates the last record wins.
    """
    if not records:
        return None

    best = records[-1]
    best_date = None
    for record in records:
        parsed = parse_date(record.get(date_field))
        if parsed is None:
            continue
        if best_date is None or parsed >= best_date:
            best, best_date = record, parsed
    return best


class JoinMergeEngine:
    """
    Resolves and merges keyed source collections.

    Example:
        engine = JoinMergeEngine()
        resolved = {
            config.name: engine.resolve(config, keyed[config.name])
            for config in configs
        }
        unified = engine.merge(resolved)
    """

    def resolve(self, config: SourceDatasetConfig, keyed: KeyedCollection) -> dict[int, Any]:
        """
        Apply the inclusion predicate and multiplicity rule of one source.

        Args:
            config: Source declaration
            keyed: Raw keyed collection for the source

        Returns:
            Key -> record (single) or key -> list of records (multi). Keys
            whose records were all excluded are absent.
        """
        resolved: dict[int, Any] = {}
        excluded = 0

        for key, records in keyed.items():
            if config.exclude_when_present:
                kept = [r for r in records if is_blank(r.get(config.exclude_when_present))]
                excluded += len(records) - len(kept)
            else:
                kept = list(records)

            if not kept:
                continue

            if config.is_multi:
                resolved[key] = kept
            elif config.latest_by:
                resolved[key] = latest_record(kept, config.latest_by)
            else:
                resolved[key] = kept[-1]

        if excluded:
            logger.debug(
                f"Excluded {excluded} records from {config.name} on {config.exclude_when_present}",
                extra={"source": config.name, "excluded": excluded},
            )
        return resolved

    def merge(self, datasets: Mapping[str, Mapping[int, Any]]) -> dict[int, UnifiedStudentRecord]:
        """
        Full outer union of keys across resolved datasets.

        Args:
            datasets: Source name -> resolved collection

        Returns:
            Key -> UnifiedStudentRecord, in ascending key order. Every record
            has one slot per dataset, None where the source has no value.
        """
        keys: set[int] = set()
        for collection in datasets.values():
            keys.update(collection.keys())

        merged: dict[int, UnifiedStudentRecord] = {}
        for key in sorted(keys):
            record = UnifiedStudentRecord(student_key=key)
            for name, collection in datasets.items():
                record.set_slot(name, collection.get(key))
            merged[key] = record

        logger.info(
            f"Merge complete. Total students: {len(merged)}",
            extra={"student_count": len(merged), "sources": list(datasets.keys())},
        )
        return merged
