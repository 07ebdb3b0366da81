"""
Join primitives over keyed collections.

These carry no conflict-resolution behavior of their own. Callers resolve
multiplicity first (see JoinMergeEngine.resolve) and then combine the
resolved collections with these helpers.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Optional


def inner_join(left: Mapping[int, dict], right: Mapping[int, dict]) -> dict[int, dict]:
    """
    Keys present on both sides, right values shallow-merged onto left.

    Result keys follow the left side's order.
    """
    return {
        key: {**value, **right[key]}
        for key, value in left.items()
        if key in right
    }


def left_join(
    primary: Mapping[int, Any],
    *secondaries: Mapping[int, Any],
    fields: Optional[Sequence[Optional[Sequence[str]]]] = None,
) -> dict[int, list[Any]]:
    """
    Every primary key, paired with the matching value of each secondary.

    Args:
        primary: Driving keyed collection
        *secondaries: Collections looked up by the primary keys
        fields: Optional field list per secondary. When given, an unmatched
            secondary contributes a dict with those fields set to None, in
            the declared order, instead of None.

    Returns:
        Key -> [primary value, secondary 1 value, ...]

    Raises:
        ValueError: If fields does not have one entry per secondary
    """
    if fields is not None and len(fields) != len(secondaries):
        raise ValueError(
            f"Expected {len(secondaries)} field lists, got {len(fields)}"
        )

    joined: dict[int, list[Any]] = {}
    for key, value in primary.items():
        row = [value]
        for idx, secondary in enumerate(secondaries):
            if key in secondary:
                row.append(secondary[key])
            elif fields is not None and fields[idx] is not None:
                row.append(dict.fromkeys(fields[idx]))
            else:
                row.append(None)
        joined[key] = row
    return joined


def set_difference(a: Mapping[int, Any], b: Mapping[int, Any]) -> dict[int, Any]:
    """Entries of a whose key is absent from b, in a's order."""
    return {key: value for key, value in a.items() if key not in b}
