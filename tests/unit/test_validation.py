"""
Unit tests for input normalization helpers.
"""

from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from transition_sync.utils.validation import (
    ValidationError,
    clean_cell,
    extract_student_key,
    is_blank,
    parse_int,
    sanitize_sql_identifier,
)


@pytest.mark.unit
class TestExtractStudentKey:
    """Tests for the single student key extraction rule"""

    @pytest.mark.parametrize("value, expected", [
        ("123456", 123456),
        ("Doe, Jane (123456)", 123456),
        ("S1234567", 1234567),
        (" 42 ", 42),
        ("42.0", 42),
        (123456, 123456),
        (123456.0, 123456),
        ("ID 123456 / alt 654321", 123456),
    ])
    def test_valid_keys(self, value, expected):
        """Test every accepted form yields the numeric key"""
        assert extract_student_key(value) == expected

    @pytest.mark.parametrize("value", [
        None, "", "   ", "abc", "n/a", 0, -5, "-5", 1.5, "12.5", True, False, [123456],
    ])
    def test_invalid_keys(self, value):
        """Test values without a usable key yield None"""
        assert extract_student_key(value) is None

    def test_long_digit_run_is_not_split(self):
        """Test a 6-digit window inside a longer number is not used"""
        assert extract_student_key("phone 2105551234") is None
        assert extract_student_key("2105551234") == 2105551234


@pytest.mark.unit
class TestCellHelpers:
    """Tests for cell normalization"""

    def test_clean_cell(self):
        assert clean_cell(None) == ""
        assert clean_cell("  Doe ") == "Doe"
        assert clean_cell(123456.0) == "123456"
        assert clean_cell(date(2024, 9, 3)) == "09/03/2024"
        assert clean_cell(True) == "TRUE"

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank("x")
        assert not is_blank(0)

    def test_parse_int(self):
        assert parse_int("30") == 30
        assert parse_int("30.0") == 30
        assert parse_int(45.0) == 45
        assert parse_int("thirty") is None
        assert parse_int("") is None
        assert parse_int("2.5") is None


@pytest.mark.unit
class TestSanitizeSqlIdentifier:
    """Tests for SQL identifier validation"""

    def test_valid_identifier(self):
        assert sanitize_sql_identifier(" tentative_rows ") == "tentative_rows"

    @pytest.mark.parametrize("value", ["", "1rows", "rows; DROP TABLE x", "a" * 64])
    def test_invalid_identifier(self, value):
        with pytest.raises(ValidationError):
            sanitize_sql_identifier(value, "table_name")


@pytest.mark.unit
class TestKeyProperties:
    """Property tests for key extraction"""

    @given(st.integers(min_value=100000, max_value=9999999))
    def test_property_keys_round_trip_through_text(self, key):
        """Property test: a key survives every cell shape it is stored in"""
        assert extract_student_key(str(key)) == key
        assert extract_student_key(float(key)) == key
        assert extract_student_key(f"Doe, Jane ({key})") == key

    @given(st.text(alphabet=st.characters(exclude_categories=("Nd",))))
    def test_property_digitless_text_has_no_key(self, value):
        """Property test: text without digits never yields a key"""
        assert extract_student_key(value) is None
