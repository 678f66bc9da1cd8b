"""Case data model.

A Case is one evaluation request: who the patient is, who the provider is,
and which diagnosis/procedure codes are being requested.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class PatientIdentity:
    """Beneficiary identity as entered at intake."""

    mbi: str
    first_name: str
    last_name: str
    date_of_birth: date

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mbi": self.mbi,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth.isoformat(),
        }


@dataclass(frozen=True)
class ProviderIdentity:
    """Rendering provider identity and practice location."""

    npi: str
    name: str | None = None
    specialty: str | None = None
    address: str | None = None
    practice_zip: str | None = None
    practice_state: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "npi": self.npi,
            "name": self.name,
            "specialty": self.specialty,
            "address": self.address,
            "practice_zip": self.practice_zip,
            "practice_state": self.practice_state,
        }


@dataclass(frozen=True)
class Case:
    """One prior authorization evaluation request.

    Cases are immutable once submitted to the orchestrator. Starting a new
    case creates a new Case instance with a fresh ``case_id``.
    """

    patient: PatientIdentity
    provider: ProviderIdentity
    icd10_code: str
    procedure_code: str
    icd10_description: str | None = None
    additional_codes: tuple[str, ...] = ()
    place_of_service: str | None = None
    clinical_summary: str = ""
    case_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def claim_codes(self) -> list[str]:
        """All procedure codes proposed for the same claim, primary first."""
        return [self.procedure_code, *self.additional_codes]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "case_id": self.case_id,
            "patient": self.patient.to_dict(),
            "provider": self.provider.to_dict(),
            "icd10_code": self.icd10_code,
            "icd10_description": self.icd10_description,
            "procedure_code": self.procedure_code,
            "additional_codes": list(self.additional_codes),
            "place_of_service": self.place_of_service,
            "clinical_summary": self.clinical_summary,
        }

    def summary(self) -> dict[str, Any]:
        """PHI-minimized view suitable for logs: codes only."""
        return {
            "case_id": self.case_id,
            "icd10": self.icd10_code,
            "procedure": self.procedure_code,
            "additional_codes": list(self.additional_codes),
        }
