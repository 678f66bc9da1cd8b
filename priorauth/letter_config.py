"""Medical necessity letter drafting configuration."""

from __future__ import annotations

from dataclasses import dataclass

from priorauth.letter import PROCEDURE_DESCRIPTION_UNAVAILABLE, LetterFacts


@dataclass
class LetterConfig:
    """Configuration for the letter drafting call."""

    model: str = "claude-sonnet-4-5-20250929"
    # Full CMS-format letters run long; 4096 tokens covers the nine sections
    max_tokens: int = 4096
    temperature: float = 0.2
    draft_marker: str = "DRAFT - Requires provider review and signature before submission."


LETTER_SYSTEM_PROMPT = """You are a medical documentation specialist drafting a Medicare medical necessity letter.

RULES:
- Use formal medical terminology appropriate for Medicare Administrative Contractor review.
- Cite specific NCD section numbers and LCD paragraph references when provided.
- Include all ICD-10 and CPT/HCPCS codes with their descriptions.
- Include citations when provided.
- The letter must follow CMS-recognized format.
- Clearly mark the output as "{draft_marker}"
- Do not fabricate clinical details. Use only what is provided.
- Do not include any disclaimer about not being medical advice. This is a template for provider use."""


def _value(value: object | None) -> str:
    return str(value) if value else "N/A"


def build_letter_prompt(facts: LetterFacts) -> str:
    """Render the fact bundle as the user prompt."""
    patient = facts.patient
    provider = facts.provider
    diagnosis = facts.diagnosis
    procedure = facts.procedure

    procedure_codes = _value(procedure.get("code"))
    if procedure.get("additional_codes"):
        procedure_codes += f" (billed with {', '.join(procedure['additional_codes'])})"

    if facts.citations:
        citations = "\n".join(
            f"- {c.source} {c.identifier or ''}: {c.title}"
            + (f" ({c.url})" if c.url else "")
            for c in facts.citations
        )
    else:
        citations = "No citations provided."

    return f"""Draft a medical necessity letter for Medicare prior authorization with the following details:

PROVIDER:
Name: {_value(provider.get("name"))}
NPI: {_value(provider.get("npi"))}
Specialty: {_value(provider.get("specialty"))}
Address: {_value(provider.get("address"))}

PATIENT:
Name: {patient.get("first_name", "")} {patient.get("last_name", "")}
MBI: {_value(patient.get("mbi"))}
Date of Birth: {_value(patient.get("date_of_birth"))}

DIAGNOSIS:
ICD-10: {_value(diagnosis.get("code"))}: {_value(diagnosis.get("description"))}

PROCEDURE REQUESTED:
CPT/HCPCS: {procedure_codes}: {procedure.get("description") or PROCEDURE_DESCRIPTION_UNAVAILABLE}

NATIONAL COVERAGE DETERMINATION (NCD):
{facts.ncd_excerpt or "No NCD found for this procedure/diagnosis combination."}

LOCAL COVERAGE DETERMINATION (LCD):
{facts.lcd_excerpt or "No LCD found for this MAC jurisdiction."}

CLINICAL SUMMARY:
{facts.clinical_summary or "No clinical summary provided."}

SUPPORTING REFERENCES:
{citations}

Generate the letter in the standard CMS-recognized format:
1. Provider header with NPI and address
2. RE: Patient identification line
3. Procedure requested with CPT code
4. Diagnosis with ICD-10 code
5. Medical necessity narrative citing NCD/LCD sections
6. Supporting clinical evidence
7. Literature citations
8. Conclusion requesting approval
9. Signature line marked as DRAFT"""


LETTER_CONFIG = LetterConfig()
