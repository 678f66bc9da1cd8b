"""Tests for date parsing and input sanitization utilities."""

from datetime import date, datetime

from priorauth.utils import clean_code, parse_flexible_date, sanitize_free_text, to_x12_date


class TestParseFlexibleDate:
    """Test cases for parse_flexible_date function."""

    def test_supported_formats(self):
        """Should accept ISO, US and compact X12 dates."""
        assert parse_flexible_date("1950-03-14") == date(1950, 3, 14)
        assert parse_flexible_date("03/14/1950") == date(1950, 3, 14)
        assert parse_flexible_date("19500314") == date(1950, 3, 14)

    def test_surrounding_whitespace(self):
        assert parse_flexible_date("  1950-03-14 ") == date(1950, 3, 14)

    def test_impossible_date(self):
        """Should reject dates that are not on the calendar."""
        assert parse_flexible_date("1950-02-30") is None

    def test_out_of_range_year(self):
        assert parse_flexible_date("1850-01-01") is None

    def test_passthrough_and_empty(self):
        assert parse_flexible_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_flexible_date(datetime(2024, 1, 2, 9, 30)) == date(2024, 1, 2)
        assert parse_flexible_date(None) is None
        assert parse_flexible_date("") is None

    def test_to_x12_date(self):
        assert to_x12_date(date(1950, 3, 14)) == "19500314"


class TestCleanCode:
    """Test cases for clean_code function."""

    def test_uppercases_and_strips_whitespace(self):
        assert clean_code(" j 9271 ") == "J9271"

    def test_strip_chars(self):
        """Should drop the listed separator characters."""
        assert clean_code("1eg4-te5-mk73", strip_chars="-") == "1EG4TE5MK73"
        assert clean_code("c50.911", strip_chars=".") == "C50911"

    def test_empty_input(self):
        assert clean_code(None) == ""
        assert clean_code("") == ""


class TestSanitizeFreeText:
    """Test cases for sanitize_free_text function."""

    def test_control_characters(self):
        """Should remove control characters but keep newlines and tabs."""
        assert sanitize_free_text("line one\x00\nline\ttwo\x1b") == "line one\nline\ttwo"

    def test_length_limit(self):
        assert len(sanitize_free_text("x" * 50, max_length=10)) == 10

    def test_empty_input(self):
        assert sanitize_free_text(None) == ""
        assert sanitize_free_text("   ") == ""
