"""Eligibility classification: Original Medicare FFS vs Medicare Advantage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from priorauth.connectors.eligibility import EligibilityResponse
from priorauth.rules.models import EvaluationContext


class PlanStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"


class PayerType(str, Enum):
    FFS = "FFS"  # Original Medicare fee-for-service
    MA = "MA"  # Medicare Advantage


# 271 insurance type codes for Original Medicare. "MA" here is Part A, not
# Medicare Advantage.
INSURANCE_TYPE_PART_A = "MA"
INSURANCE_TYPE_PART_B = "MB"
ORIGINAL_MEDICARE_INSURANCE_TYPES = frozenset({INSURANCE_TYPE_PART_A, INSURANCE_TYPE_PART_B})

ACTIVE_PLAN_STATUS_CODES = frozenset({"Active", "1"})


def plan_status_from_code(code: str | None) -> PlanStatus:
    if not code:
        return PlanStatus.UNKNOWN
    if code in ACTIVE_PLAN_STATUS_CODES:
        return PlanStatus.ACTIVE
    return PlanStatus.INACTIVE


@dataclass(frozen=True)
class EligibilityDetermination:
    eligible: bool
    plan_status: PlanStatus
    payer_type: PayerType
    parts: tuple[str, ...] = ()
    insurance_type: str | None = None
    effective_dates: dict[str, str | None] = field(default_factory=dict)
    secondary_payer: str | None = None
    ma_plan_name: str | None = None

    @property
    def is_medicare_advantage(self) -> bool:
        return self.payer_type is PayerType.MA

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligible": self.eligible,
            "plan_status": self.plan_status.value,
            "payer_type": self.payer_type.value,
            "parts": list(self.parts),
            "insurance_type": self.insurance_type,
            "effective_dates": dict(self.effective_dates),
            "secondary_payer": self.secondary_payer,
            "ma_plan_name": self.ma_plan_name,
        }


def classify_eligibility(response: EligibilityResponse) -> EligibilityDetermination:
    """Classify payer type and covered parts from a parsed 271 response.

    Payer type is MA when an insurance type is present and is not one of the
    Original Medicare codes. Parts come from the insurance type or explicit
    part flags; an eligible patient with neither defaults to A and B.
    """
    plan_status = plan_status_from_code(response.plan_status)
    eligible = plan_status is PlanStatus.ACTIVE

    insurance_type = response.insurance_type
    is_ma = bool(insurance_type) and insurance_type not in ORIGINAL_MEDICARE_INSURANCE_TYPES
    payer_type = PayerType.MA if is_ma else PayerType.FFS

    parts: list[str] = []
    if insurance_type == INSURANCE_TYPE_PART_A or response.part_a:
        parts.append("A")
    if insurance_type == INSURANCE_TYPE_PART_B or response.part_b:
        parts.append("B")
    if not parts and eligible:
        parts = ["A", "B"]

    return EligibilityDetermination(
        eligible=eligible,
        plan_status=plan_status,
        payer_type=payer_type,
        parts=tuple(parts),
        insurance_type=insurance_type,
        effective_dates={
            "part_a": response.part_a_effective,
            "part_b": response.part_b_effective,
        },
        secondary_payer=response.secondary_payer,
        ma_plan_name=(response.plan_name or response.payer_name) if is_ma else None,
    )


async def evaluate_eligibility(context: EvaluationContext) -> dict[str, Any]:
    """Run the 270/271 inquiry and classify the response."""
    response = await context.services.eligibility.check(
        context.case, client_address=context.client_address
    )
    return classify_eligibility(response).to_dict()
