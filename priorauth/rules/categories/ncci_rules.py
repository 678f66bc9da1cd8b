"""NCCI (National Correct Coding Initiative) bundling checks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from priorauth.datasets import DatasetName, MUETable, PTPEditTable
from priorauth.errors import TransportError
from priorauth.rules.models import EvaluationContext
from priorauth.utils import clean_code

logger = logging.getLogger(__name__)

MODIFIER_ALLOWED_NOTE = (
    "Modifier allowed: use modifier -59 (distinct procedural service) "
    "if services are truly separate."
)
NO_MODIFIER_NOTE = (
    "No modifier override: these codes cannot be billed together on the same claim."
)


@dataclass(frozen=True)
class Conflict:
    """One PTP edit hit between two submitted codes."""

    code1: str
    code2: str
    code1_desc: str
    code2_desc: str
    modifier: int
    context: str
    effective_date: str | None

    @property
    def override_allowed(self) -> bool:
        return self.modifier == 1

    @property
    def modifier_note(self) -> str:
        return MODIFIER_ALLOWED_NOTE if self.override_allowed else NO_MODIFIER_NOTE

    def to_dict(self) -> dict[str, Any]:
        return {
            "code1": self.code1,
            "code2": self.code2,
            "code1_desc": self.code1_desc,
            "code2_desc": self.code2_desc,
            "modifier": self.modifier,
            "override_allowed": self.override_allowed,
            "modifier_note": self.modifier_note,
            "context": self.context,
            "effective_date": self.effective_date,
        }


@dataclass(frozen=True)
class PTPCheckResult:
    conflicts: tuple[Conflict, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def message(self) -> str:
        if self.conflicts:
            return f"WARNING: {len(self.conflicts)} NCCI PTP edit conflict(s) found."
        return "No NCCI PTP conflicts found for this code combination."

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_conflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "message": self.message,
        }


@dataclass(frozen=True)
class MUECheckResult:
    code: str
    found: bool
    mue_value: int | None = None
    adjudication_type: str | None = None
    rationale: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "found": self.found,
            "mue_value": self.mue_value,
            "adjudication_type": self.adjudication_type,
            "rationale": self.rationale,
        }


def check_ptp_edits(table: PTPEditTable, codes: Sequence[str]) -> PTPCheckResult:
    """Report every PTP edit between any two of the codes, in either order."""
    cleaned = [clean_code(code) for code in codes if clean_code(code)]
    conflicts: list[Conflict] = []
    for i, code_a in enumerate(cleaned):
        for code_b in cleaned[i + 1:]:
            edit = table.find(code_a, code_b)
            if edit is None:
                continue
            conflicts.append(
                Conflict(
                    code1=edit.col1,
                    code2=edit.col2,
                    code1_desc=edit.col1_desc,
                    code2_desc=edit.col2_desc,
                    modifier=edit.modifier,
                    context=edit.context,
                    effective_date=edit.effective_date,
                )
            )
    return PTPCheckResult(conflicts=tuple(conflicts))


def check_mue(table: MUETable, code: str) -> MUECheckResult:
    """Look up the unit ceiling for one code. No limit on file is not an error."""
    cleaned = clean_code(code)
    edit = table.get(cleaned)
    if edit is None:
        return MUECheckResult(code=cleaned, found=False)
    return MUECheckResult(
        code=cleaned,
        found=True,
        mue_value=edit.mue_value,
        adjudication_type=edit.adjudication_type,
        rationale=edit.rationale,
    )


async def evaluate_ncci(context: EvaluationContext) -> dict[str, Any]:
    """PTP over all claim codes and MUE over the primary code."""
    case = context.case
    datasets = context.services.datasets
    ptp_table, mue_table = await asyncio.gather(
        datasets.get(DatasetName.PTP_EDITS),
        datasets.get(DatasetName.MUE_EDITS),
        return_exceptions=True,
    )

    errors: list[str] = []
    ptp = mue = None

    if isinstance(ptp_table, Exception):
        logger.warning(f"PTP check unavailable for case {case.case_id}: {ptp_table}")
        errors.append(f"PTP edits unavailable: {ptp_table}")
    else:
        ptp = check_ptp_edits(ptp_table, case.claim_codes).to_dict()

    if isinstance(mue_table, Exception):
        logger.warning(f"MUE check unavailable for case {case.case_id}: {mue_table}")
        errors.append(f"MUE edits unavailable: {mue_table}")
    else:
        mue = check_mue(mue_table, case.procedure_code).to_dict()

    if ptp is None and mue is None:
        raise TransportError("; ".join(errors), "ncci_datasets")

    return {"ptp": ptp, "mue": mue, "errors": errors}
