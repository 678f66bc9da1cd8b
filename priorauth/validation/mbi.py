"""Medicare Beneficiary Identifier (MBI) validation.

MBI format (11 characters): C A AN N A A N A A N N
  Position 1:     C  = 1-9 (no 0)
  Position 2:     A  = letter excluding S, L, O, I, B, Z
  Position 3:     AN = digit or letter (same exclusions)
  Position 4:     N  = 0-9
  Positions 5-6:  A  = letter (same exclusions)
  Position 7:     N  = 0-9
  Positions 8-9:  A  = letter (same exclusions)
  Positions 10-11: N = 0-9

The excluded letters look like the digits 5, 1, 0, 1, 8 and 2.
"""

from __future__ import annotations

import re

from priorauth.errors import FormatError
from priorauth.utils import clean_code

EXCLUDED_LETTERS = frozenset("SLOIBZ")

_ALPHA = "[AC-HJKMNP-RT-Y]"
_NUMERIC = "[0-9]"
_ALPHANUMERIC = "[0-9AC-HJKMNP-RT-Y]"

MBI_PATTERN = re.compile(
    f"^[1-9]{_ALPHA}{_ALPHANUMERIC}{_NUMERIC}{_ALPHA}{_ALPHA}"
    f"{_NUMERIC}{_ALPHA}{_ALPHA}{_NUMERIC}{_NUMERIC}$"
)

MBI_LENGTH = 11


def clean_mbi(mbi: str | None) -> str:
    """Strip hyphens and whitespace and uppercase."""
    return clean_code(mbi, strip_chars="-")


def format_mbi(mbi: str) -> str:
    """Return the hyphenated ``XXXX-XXX-XXXX`` display form.

    Input that does not clean to 11 characters is returned unchanged.
    """
    cleaned = clean_mbi(mbi)
    if len(cleaned) != MBI_LENGTH:
        return mbi
    return f"{cleaned[:4]}-{cleaned[4:7]}-{cleaned[7:]}"


def validate_mbi(mbi: str | None, field: str = "mbi") -> str:
    """Validate an MBI and return its canonical hyphenated form.

    Raises:
        FormatError: If the MBI is missing, the wrong length, or does not
            match the positional character classes
    """
    if not mbi or not isinstance(mbi, str):
        raise FormatError("MBI is required", field=field)

    cleaned = clean_mbi(mbi)

    if len(cleaned) != MBI_LENGTH:
        raise FormatError(
            f"MBI must be {MBI_LENGTH} characters (got {len(cleaned)})", field=field
        )

    if not MBI_PATTERN.match(cleaned):
        raise FormatError(
            "Invalid MBI format. Expected pattern: 1AN9-AA9-AA99 "
            "(letters exclude S, L, O, I, B, Z)",
            field=field,
        )

    return format_mbi(cleaned)


def is_valid_mbi(mbi: str | None) -> bool:
    """Boolean convenience wrapper around :func:`validate_mbi`."""
    try:
        validate_mbi(mbi)
    except FormatError:
        return False
    return True
