"""NPI (National Provider Identifier) validation.

An NPI is 10 digits. Its last digit is a Luhn check digit computed over the
15-digit string formed by prepending the card issuer prefix 80840.
"""

from __future__ import annotations

import re

from priorauth.errors import ChecksumError, FormatError
from priorauth.utils import clean_code

NPI_PREFIX = "80840"

_NPI_PATTERN = re.compile(r"^\d{10}$")


def luhn_valid(number: str) -> bool:
    """Standard Luhn-10 check over a string of digits.

    Scanning right to left, every second digit (starting with the second
    from the right) is doubled, and 9 is subtracted when the double exceeds 9.
    """
    total = 0
    for offset, char in enumerate(reversed(number)):
        digit = int(char)
        if offset % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_npi(npi: str | None, field: str = "npi") -> str:
    """Validate an NPI and return the cleaned 10-digit string.

    Raises:
        FormatError: If the NPI is not exactly 10 digits after removing
            whitespace and hyphens (checked before the checksum)
        ChecksumError: If the Luhn check over ``80840 + npi`` fails
    """
    if not npi or not isinstance(npi, str):
        raise FormatError("NPI is required", field=field)

    cleaned = clean_code(npi, strip_chars="-")

    if not _NPI_PATTERN.match(cleaned):
        raise FormatError("NPI must be exactly 10 digits", field=field)

    if not luhn_valid(NPI_PREFIX + cleaned):
        raise ChecksumError(
            "NPI check digit is invalid (Luhn-10 failure)", field=field
        )

    return cleaned


def is_valid_npi(npi: str | None) -> bool:
    """Boolean convenience wrapper around :func:`validate_npi`."""
    try:
        validate_npi(npi)
    except (FormatError, ChecksumError):
        return False
    return True
