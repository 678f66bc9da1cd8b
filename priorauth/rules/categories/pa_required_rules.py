"""Prior authorization required lists (OPD, ASC demonstration, WISeR, DMEPOS)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from priorauth.datasets import DatasetName, PARequiredEntry, PARequiredTable
from priorauth.rules.models import EvaluationContext
from priorauth.utils import clean_code


@dataclass(frozen=True)
class PARequiredResult:
    code: str
    required: bool
    matches: tuple[PARequiredEntry, ...] = ()
    message: str | None = None
    error: str | None = None
    practice_state: str | None = None

    @property
    def applicable_lists(self) -> list[dict[str, str | None]]:
        if not self.required:
            return []
        return [
            {"list": m.list_name, "effective_date": m.effective_date} for m in self.matches
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "required": self.required,
            "matches": [m.to_dict() for m in self.matches],
            "applicable_lists": self.applicable_lists,
            "practice_state": self.practice_state,
            "message": self.message,
            "error": self.error,
        }


def match_pa_required(
    table: PARequiredTable, code: str | None, practice_state: str | None = None
) -> PARequiredResult:
    """Check a procedure code against the PA-required lists.

    State-scoped lists apply only in their states. When the practice state
    is unknown every match is treated as applicable.
    """
    cleaned = clean_code(code)
    state = clean_code(practice_state) or None

    if not cleaned:
        return PARequiredResult(code="", required=False, error="No procedure code provided")

    matches = table.matches(cleaned)
    if not matches:
        return PARequiredResult(
            code=cleaned,
            required=False,
            practice_state=state,
            message=(
                f"PA NOT REQUIRED: Code {cleaned} does not appear on any CMS prior "
                "authorization required list for Original Medicare FFS."
            ),
        )

    applicable = tuple(m for m in matches if m.applies_to(state))
    if not applicable:
        return PARequiredResult(
            code=cleaned,
            required=False,
            matches=matches,
            practice_state=state,
            message=(
                f"PA NOT REQUIRED in {state}: Code {cleaned} appears on a "
                "state-specific PA list but not for your state."
            ),
        )

    list_names = ", ".join(m.list_name for m in applicable)
    return PARequiredResult(
        code=cleaned,
        required=True,
        matches=applicable,
        practice_state=state,
        message=(
            f"PA REQUIRED: Code {cleaned} appears on: {list_names}. "
            "Authorization must be obtained before service."
        ),
    )


async def evaluate_pa_required(context: EvaluationContext) -> dict[str, Any]:
    table = await context.services.datasets.get(DatasetName.PA_REQUIRED)
    case = context.case
    return match_pa_required(
        table, case.procedure_code, case.provider.practice_state
    ).to_dict()
