"""Medical necessity letter fact assembly.

Reduces a case and its evaluation results to the single fact bundle sent to
the drafting service. The drafted text itself is never inspected here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from priorauth.models import Case
from priorauth.rules.models import CaseResults, EvaluationKind

# Procedure descriptors are AMA-licensed and not shipped with the datasets
PROCEDURE_DESCRIPTION_UNAVAILABLE = "(description not available)"


@dataclass(frozen=True)
class Citation:
    """A coverage policy the letter may cite."""

    source: str  # "NCD" or "LCD"
    identifier: str | None
    title: str
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "identifier": self.identifier,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True)
class LetterFacts:
    """Everything the drafting service is told about the case."""

    patient: dict[str, Any]
    provider: dict[str, Any]
    diagnosis: dict[str, Any]
    procedure: dict[str, Any]
    ncd_excerpt: str | None = None
    lcd_excerpt: str | None = None
    clinical_summary: str = ""
    citations: list[Citation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "patient": dict(self.patient),
            "provider": dict(self.provider),
            "diagnosis": dict(self.diagnosis),
            "procedure": dict(self.procedure),
            "ncd_excerpt": self.ncd_excerpt,
            "lcd_excerpt": self.lcd_excerpt,
            "clinical_summary": self.clinical_summary,
            "citations": [c.to_dict() for c in self.citations],
        }


def _policy_excerpt(source: str, policy: dict[str, Any]) -> str:
    identifier = policy.get("id")
    header = f"{source} {identifier}: " if identifier else f"{source}: "
    lines = [header + (policy.get("title") or "Untitled policy")]
    criteria = policy.get("criteria") or []
    if criteria:
        lines.append("Coverage criteria:")
        lines.extend(f"- {item}" for item in criteria)
    doc_requirements = policy.get("doc_requirements") or []
    if doc_requirements:
        lines.append("Documentation requirements:")
        lines.extend(f"- {item}" for item in doc_requirements)
    return "\n".join(lines)


def _first_policy(side: dict[str, Any] | None) -> dict[str, Any] | None:
    if not side or not side.get("found"):
        return None
    results = side.get("results") or []
    return results[0] if results else None


def _citations(source: str, side: dict[str, Any] | None) -> list[Citation]:
    if not side or not side.get("found"):
        return []
    return [
        Citation(
            source=source,
            identifier=policy.get("id"),
            title=policy.get("title") or "",
            url=policy.get("url"),
        )
        for policy in side.get("results") or []
    ]


def assemble_letter_facts(case: Case, results: CaseResults | None = None) -> LetterFacts:
    """Build the fact bundle from a case and whatever coverage results exist.

    The excerpts come from the first NCD and first LCD found; every found
    policy is listed as a citation.
    """
    coverage = results.payload(EvaluationKind.COVERAGE) if results else None
    ncd = coverage.get("ncd") if coverage else None
    lcd = coverage.get("lcd") if coverage else None

    ncd_policy = _first_policy(ncd)
    lcd_policy = _first_policy(lcd)

    patient = case.patient
    provider = case.provider
    return LetterFacts(
        patient={
            "first_name": patient.first_name,
            "last_name": patient.last_name,
            "mbi": patient.mbi,
            "date_of_birth": patient.date_of_birth.isoformat(),
        },
        provider={
            "name": provider.name,
            "npi": provider.npi,
            "specialty": provider.specialty,
            "address": provider.address,
        },
        diagnosis={
            "code": case.icd10_code,
            "description": case.icd10_description,
        },
        procedure={
            "code": case.procedure_code,
            "additional_codes": list(case.additional_codes),
            "description": None,
        },
        ncd_excerpt=_policy_excerpt("NCD", ncd_policy) if ncd_policy else None,
        lcd_excerpt=_policy_excerpt("LCD", lcd_policy) if lcd_policy else None,
        clinical_summary=case.clinical_summary,
        citations=_citations("NCD", ncd) + _citations("LCD", lcd),
    )
