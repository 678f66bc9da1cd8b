"""ICD-10-CM format validation.

Format only: whether a code actually exists is answered by the NLM
clinical table client in ``priorauth.connectors.icd10``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from priorauth.errors import FormatError
from priorauth.utils import clean_code

ICD10_PATTERN = re.compile(r"^[A-Z]\d{2}[A-Z0-9]{0,4}$")

# Category codes (3 characters) are headers, not billable
MIN_BILLABLE_LENGTH = 4


@dataclass(frozen=True)
class ICD10Code:
    """A format-valid ICD-10-CM code."""

    cleaned: str

    @property
    def formatted(self) -> str:
        """Dotted form, e.g. ``C50911`` -> ``C50.911``."""
        if len(self.cleaned) > 3:
            return f"{self.cleaned[:3]}.{self.cleaned[3:]}"
        return self.cleaned

    @property
    def billable(self) -> bool:
        return len(self.cleaned) >= MIN_BILLABLE_LENGTH


def clean_icd10(code: str | None) -> str:
    """Remove dots and whitespace and uppercase."""
    return clean_code(code, strip_chars=".")


def validate_icd10_format(code: str | None, field: str = "icd10") -> ICD10Code:
    """Validate ICD-10-CM format.

    Raises:
        FormatError: If the code is missing or not letter + 2 digits +
            up to 4 alphanumerics
    """
    if not code or not isinstance(code, str):
        raise FormatError("ICD-10 code is required", field=field)

    cleaned = clean_icd10(code)
    if not ICD10_PATTERN.match(cleaned):
        raise FormatError("Invalid ICD-10 format", field=field)

    return ICD10Code(cleaned=cleaned)
