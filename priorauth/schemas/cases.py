"""Pydantic schemas for case intake and identifier validation endpoints."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from priorauth.errors import FormatError
from priorauth.models import Case, PatientIdentity, ProviderIdentity
from priorauth.utils import parse_flexible_date
from priorauth.validation.intake import MAX_CLAIM_CODES


class MBIRequest(BaseModel):
    mbi: str


class NPIRequest(BaseModel):
    npi: str


class ICD10Request(BaseModel):
    code: str


class CaseSubmission(BaseModel):
    """Request model for submitting a case for evaluation."""

    mbi: str
    first_name: str
    last_name: str
    dob: str
    npi: str
    provider_name: str | None = None
    specialty: str | None = None
    address: str | None = None
    practice_zip: str | None = None
    practice_state: str | None = None
    icd10: str
    icd10_description: str | None = None
    cpt: str
    additional_codes: list[str] = []
    place_of_service: str | None = None
    clinical_summary: str = ""

    @field_validator("additional_codes")
    @classmethod
    def validate_additional_codes_length(cls, v: list[str]) -> list[str]:
        """Validate that additional_codes doesn't exceed the claim maximum."""
        if len(v) + 1 > MAX_CLAIM_CODES:
            raise ValueError(
                f"Too many procedure codes. Maximum {MAX_CLAIM_CODES} per claim."
            )
        return v

    def to_case(self) -> Case:
        """Build an unvalidated Case; run validate_case on the result.

        Raises:
            FormatError: If the date of birth cannot be parsed
        """
        date_of_birth = parse_flexible_date(self.dob)
        if date_of_birth is None:
            raise FormatError(
                "Date of birth must be YYYY-MM-DD, MM/DD/YYYY or YYYYMMDD", field="dob"
            )
        return Case(
            patient=PatientIdentity(
                mbi=self.mbi,
                first_name=self.first_name,
                last_name=self.last_name,
                date_of_birth=date_of_birth,
            ),
            provider=ProviderIdentity(
                npi=self.npi,
                name=self.provider_name,
                specialty=self.specialty,
                address=self.address,
                practice_zip=self.practice_zip,
                practice_state=self.practice_state,
            ),
            icd10_code=self.icd10,
            icd10_description=self.icd10_description,
            procedure_code=self.cpt,
            additional_codes=tuple(self.additional_codes),
            place_of_service=self.place_of_service,
            clinical_summary=self.clinical_summary,
        )
