"""Intake gate: validates a Case before any evaluator runs.

Every check here is syntactic and runs without network access. The first
failing field raises; nothing is sent to external services for a case that
does not pass.
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import date

from priorauth.errors import FormatError
from priorauth.models import Case
from priorauth.utils import clean_code, sanitize_free_text

from .icd10 import validate_icd10_format
from .mbi import validate_mbi
from .npi import validate_npi

# CPT (incl. Category II/III) or Level II HCPCS
PROCEDURE_CODE_PATTERN = re.compile(r"^(\d{4}[0-9A-Z]|[A-Z]\d{4})$")
ZIP_PATTERN = re.compile(r"^(\d{5})(-?\d{4})?$")
STATE_PATTERN = re.compile(r"^[A-Z]{2}$")
PLACE_OF_SERVICE_PATTERN = re.compile(r"^\d{2}$")

# One claim rarely carries more lines than this; larger lists are rejected
MAX_CLAIM_CODES = 50


def validate_procedure_code(code: str | None, field: str = "cpt") -> str:
    """Validate a CPT/HCPCS code and return it cleaned and uppercased."""
    cleaned = clean_code(code)
    if not cleaned:
        raise FormatError("Procedure code is required", field=field)
    if not PROCEDURE_CODE_PATTERN.match(cleaned):
        raise FormatError(f"Invalid CPT/HCPCS format: {cleaned}", field=field)
    return cleaned


def validate_zip(zip_code: str | None, field: str = "practice_zip") -> str:
    """Validate a ZIP or ZIP+4 and return the 5-digit ZIP."""
    cleaned = clean_code(zip_code)
    match = ZIP_PATTERN.match(cleaned)
    if not match:
        raise FormatError("ZIP code must be 5 digits (ZIP+4 accepted)", field=field)
    return match.group(1)


def validate_state(state: str | None, field: str = "practice_state") -> str:
    """Validate a two-letter state abbreviation."""
    cleaned = clean_code(state)
    if not STATE_PATTERN.match(cleaned):
        raise FormatError("State must be a two-letter abbreviation", field=field)
    return cleaned


def validate_case(case: Case, today: date | None = None) -> Case:
    """Validate and normalize a case.

    Returns a new Case with canonical identifiers (hyphenated MBI, cleaned
    NPI, dotted ICD-10, uppercased procedure codes, 5-digit ZIP).

    Raises:
        FormatError: For any field that fails its pattern
        ChecksumError: For an NPI whose check digit is wrong
    """
    today = today or date.today()
    patient = case.patient
    provider = case.provider

    mbi = validate_mbi(patient.mbi, field="mbi")
    first_name = sanitize_free_text(patient.first_name, max_length=100)
    last_name = sanitize_free_text(patient.last_name, max_length=100)
    if not first_name:
        raise FormatError("Patient first name is required", field="first_name")
    if not last_name:
        raise FormatError("Patient last name is required", field="last_name")
    if patient.date_of_birth > today:
        raise FormatError("Date of birth cannot be in the future", field="dob")

    npi = validate_npi(provider.npi, field="npi")
    practice_zip = (
        validate_zip(provider.practice_zip) if provider.practice_zip else None
    )
    practice_state = (
        validate_state(provider.practice_state) if provider.practice_state else None
    )

    icd10 = validate_icd10_format(case.icd10_code, field="icd10")
    procedure_code = validate_procedure_code(case.procedure_code, field="cpt")

    if len(case.additional_codes) + 1 > MAX_CLAIM_CODES:
        raise FormatError(
            f"Too many procedure codes. Maximum {MAX_CLAIM_CODES} per claim.",
            field="additional_codes",
        )
    additional_codes = tuple(
        validate_procedure_code(code, field=f"additional_codes[{i}]")
        for i, code in enumerate(case.additional_codes)
    )

    place_of_service = None
    if case.place_of_service:
        place_of_service = clean_code(case.place_of_service)
        if not PLACE_OF_SERVICE_PATTERN.match(place_of_service):
            raise FormatError(
                "Place of service must be a two-digit CMS code",
                field="place_of_service",
            )

    return replace(
        case,
        patient=replace(patient, mbi=mbi, first_name=first_name, last_name=last_name),
        provider=replace(
            provider,
            npi=npi,
            practice_zip=practice_zip,
            practice_state=practice_state,
        ),
        icd10_code=icd10.formatted,
        procedure_code=procedure_code,
        additional_codes=additional_codes,
        place_of_service=place_of_service,
        clinical_summary=sanitize_free_text(case.clinical_summary),
    )
