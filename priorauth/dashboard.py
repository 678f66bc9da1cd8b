"""Dashboard presentation: Medicare Advantage gate and per-slot status.

Downstream results are always computed and stored. When eligibility reports
Medicare Advantage only the eligibility slot and the MA alert are shown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from priorauth.rules.models import CaseResults, EvaluationKind, EvaluationResult, ResultStatus


class SlotStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    INFO = "info"
    LOADING = "loading"


SLOT_TITLES = {
    EvaluationKind.ELIGIBILITY: "Patient Eligibility (270/271)",
    EvaluationKind.PA_REQUIRED: "Prior Authorization Required?",
    EvaluationKind.COVERAGE: "Coverage Determination (NCD + LCD)",
    EvaluationKind.NCCI: "NCCI Bundling Check",
    EvaluationKind.SAD: "SAD Exclusion Check",
}

MA_ALERT = (
    "This patient is enrolled in a Medicare Advantage plan{plan}. This tool "
    "supports Original Medicare FFS only. Medicare Advantage plans have "
    "plan-specific prior authorization rules that are not covered here."
)


@dataclass(frozen=True)
class DashboardSlot:
    kind: EvaluationKind
    title: str
    status: SlotStatus
    payload: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "status": self.status.value,
            "payload": self.payload,
            "error": self.error,
        }


@dataclass(frozen=True)
class DashboardView:
    case_id: str
    generation: int
    settled: bool
    medicare_advantage: bool = False
    alert: str | None = None
    slots: list[DashboardSlot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "case_id": self.case_id,
            "generation": self.generation,
            "settled": self.settled,
            "medicare_advantage": self.medicare_advantage,
            "alert": self.alert,
            "slots": [slot.to_dict() for slot in self.slots],
        }


def _eligibility_status(payload: dict[str, Any]) -> SlotStatus:
    if payload.get("payer_type") == "MA":
        return SlotStatus.FAIL
    return SlotStatus.PASS if payload.get("eligible") else SlotStatus.FAIL


def _pa_required_status(payload: dict[str, Any]) -> SlotStatus:
    if payload.get("error"):
        return SlotStatus.WARN
    return SlotStatus.FAIL if payload.get("required") else SlotStatus.PASS


def _coverage_status(payload: dict[str, Any]) -> SlotStatus:
    return SlotStatus.PASS if payload.get("found") else SlotStatus.INFO


def _ncci_status(payload: dict[str, Any]) -> SlotStatus:
    ptp = payload.get("ptp") or {}
    if ptp.get("has_conflicts") or payload.get("errors"):
        return SlotStatus.WARN
    return SlotStatus.PASS


def _sad_status(payload: dict[str, Any]) -> SlotStatus:
    if not payload.get("applicable"):
        return SlotStatus.WARN if payload.get("error") else SlotStatus.INFO
    excluded = payload.get("excluded")
    if excluded is None:
        return SlotStatus.WARN
    return SlotStatus.FAIL if excluded else SlotStatus.PASS


PAYLOAD_STATUS = {
    EvaluationKind.ELIGIBILITY: _eligibility_status,
    EvaluationKind.PA_REQUIRED: _pa_required_status,
    EvaluationKind.COVERAGE: _coverage_status,
    EvaluationKind.NCCI: _ncci_status,
    EvaluationKind.SAD: _sad_status,
}


def slot_status(result: EvaluationResult) -> SlotStatus:
    """Display status for one result slot."""
    if result.status is ResultStatus.PENDING:
        return SlotStatus.LOADING
    if result.status is ResultStatus.ERROR:
        # Without eligibility nothing downstream can be trusted
        if result.kind is EvaluationKind.ELIGIBILITY:
            return SlotStatus.FAIL
        return SlotStatus.WARN
    return PAYLOAD_STATUS[result.kind](result.payload or {})


def _slot(result: EvaluationResult) -> DashboardSlot:
    return DashboardSlot(
        kind=result.kind,
        title=SLOT_TITLES[result.kind],
        status=slot_status(result),
        payload=result.payload,
        error=result.error,
    )


def build_dashboard(results: CaseResults) -> DashboardView:
    """Apply the display policy to one round of results."""
    if results.is_medicare_advantage:
        eligibility = results.get(EvaluationKind.ELIGIBILITY)
        plan_name = (eligibility.payload or {}).get("ma_plan_name")
        return DashboardView(
            case_id=results.case_id,
            generation=results.generation,
            settled=results.settled,
            medicare_advantage=True,
            alert=MA_ALERT.format(plan=f" ({plan_name})" if plan_name else ""),
            slots=[_slot(eligibility)],
        )

    return DashboardView(
        case_id=results.case_id,
        generation=results.generation,
        settled=results.settled,
        slots=[_slot(results.slots[kind]) for kind in EvaluationKind if kind in results.slots],
    )
