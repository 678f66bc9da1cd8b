"""Identifier and intake validators.

Pure, stateless format and checksum checks used as pipeline input gates.
"""

from .icd10 import ICD10Code, clean_icd10, validate_icd10_format
from .intake import (
    validate_case,
    validate_procedure_code,
    validate_state,
    validate_zip,
)
from .mbi import clean_mbi, format_mbi, is_valid_mbi, validate_mbi
from .npi import NPI_PREFIX, is_valid_npi, luhn_valid, validate_npi

__all__ = [
    "ICD10Code",
    "NPI_PREFIX",
    "clean_icd10",
    "clean_mbi",
    "format_mbi",
    "is_valid_mbi",
    "is_valid_npi",
    "luhn_valid",
    "validate_case",
    "validate_icd10_format",
    "validate_mbi",
    "validate_npi",
    "validate_procedure_code",
    "validate_state",
    "validate_zip",
]
