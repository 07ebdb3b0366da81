"""
Input normalization utilities shared by loaders, the merge engine and the
target table accessors.

Every source stores the student identifier in a slightly different shape
("123456", "Doe, Jane (123456)", "S1234567", 123456.0). All of them go
through extract_student_key so that records correlate across datasets.
"""

import re
from datetime import date, datetime
from typing import Any, Optional


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


# A run of 6 or 7 digits that is not part of a longer digit run
_STUDENT_KEY_PATTERN = re.compile(r"(?<!\d)(\d{6,7})(?!\d)")


def extract_student_key(value: Any) -> Optional[int]:
    """
    Extract the canonical numeric student key from a cell value.

    Args:
        value: Raw cell value (int, float, or text)

    Returns:
        The student key, or None when the value carries no usable key

    Examples:
        >>> extract_student_key("Doe, Jane (123456)")
        123456
        >>> extract_student_key(" 42 ")
        42
        >>> extract_student_key("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value if value > 0 else None

    if isinstance(value, float):
        if value.is_integer() and value > 0:
            return int(value)
        return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = _STUDENT_KEY_PATTERN.search(text)
    if match:
        return int(match.group(1))

    try:
        number = float(text)
    except ValueError:
        return None

    if number.is_integer() and number > 0:
        return int(number)
    return None


def is_blank(value: Any) -> bool:
    """Return True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def clean_cell(value: Any) -> str:
    """
    Normalize a cell value to the string form stored in the target table.

    None becomes "", dates become MM/DD/YYYY, integral floats lose their
    trailing ".0", everything else is str() and stripped.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%m/%d/%Y")
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_int(value: Any) -> Optional[int]:
    """
    Parse a whole number from a cell value.

    Returns None for blanks, non-numeric text and fractional values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None

    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def sanitize_sql_identifier(identifier: str, field_name: str = "identifier") -> str:
    """
    Sanitize an SQL identifier (table name, column name, etc.).

    Args:
        identifier: The identifier to sanitize
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier

    Raises:
        ValidationError: If validation fails
    """
    if not identifier or not isinstance(identifier, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    identifier = identifier.strip()

    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "SQL identifiers must start with a letter or underscore and contain only "
            "alphanumeric characters and underscores."
        )

    if len(identifier) > 63:  # PostgreSQL limit
        raise ValidationError(f"{field_name} exceeds PostgreSQL maximum length of 63 characters")

    return identifier
