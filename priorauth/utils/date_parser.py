"""Date parsing utilities for intake and eligibility data."""

from __future__ import annotations

from datetime import date, datetime

# Reasonable date bounds for beneficiary dates of birth and coverage dates
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100


def parse_flexible_date(value: str | date | None) -> date | None:
    """Parse a date from multiple common formats with validation.

    Supports the following formats:
    - ISO 8601: YYYY-MM-DD (e.g., 1950-03-14)
    - US format: MM/DD/YYYY (e.g., 03/14/1950)
    - Compact / X12: YYYYMMDD (e.g., 19500314)

    Validates that the date is a real calendar date and that the year is
    between 1900 and 2100.

    Args:
        value: Date string, an existing date, or None

    Returns:
        Parsed date, or None if parsing fails or input is None

    Examples:
        >>> parse_flexible_date("1950-03-14")
        datetime.date(1950, 3, 14)
        >>> parse_flexible_date("19500314")
        datetime.date(1950, 3, 14)
        >>> parse_flexible_date("1950-02-30") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    formats = [
        "%Y-%m-%d",  # ISO 8601
        "%m/%d/%Y",  # US format
        "%Y%m%d",  # Compact / X12
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(value.strip(), fmt)
            if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
                continue
            return parsed.date()
        except ValueError:
            continue

    return None


def to_x12_date(value: date) -> str:
    """Format a date as the YYYYMMDD form used by X12 270/271 transactions."""
    return value.strftime("%Y%m%d")
