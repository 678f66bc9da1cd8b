"""Self-Administered Drug (SAD) exclusion check.

Excluded drugs bill under Part D, not the physician fee schedule. The check
is tri-state: excluded, not excluded, or unknown when the registry could
not be consulted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from priorauth.errors import PriorAuthError, UnknownStateError
from priorauth.rules.models import EvaluationContext
from priorauth.utils import clean_code

logger = logging.getLogger(__name__)

# J-codes (drugs/biologicals) and Q-codes (temporary drug codes)
DRUG_CODE_PATTERN = re.compile(r"^[JQ]\d{4}$")


class BillingRoute(str, Enum):
    PART_B = "partB"
    PART_D = "partD"


@dataclass(frozen=True)
class SADCheckResult:
    code: str
    applicable: bool
    excluded: bool | None
    billing_route: BillingRoute | None
    message: str | None = None
    error: str | None = None
    details: dict[str, Any] | None = None

    @property
    def unknown(self) -> bool:
        return self.applicable and self.excluded is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "applicable": self.applicable,
            "excluded": self.excluded,
            "billing_route": self.billing_route.value if self.billing_route else None,
            "message": self.message,
            "error": self.error,
            "details": self.details,
        }


def is_drug_code(code: str | None) -> bool:
    return bool(DRUG_CODE_PATTERN.match(clean_code(code)))


async def find_sad_record(registry: Any, code: str) -> dict[str, Any] | None:
    """Return the exclusion record for a drug code, or None if not listed.

    Raises:
        UnknownStateError: If the registry could not be searched
    """
    try:
        records = await registry.search_sad(code)
    except PriorAuthError as e:
        raise UnknownStateError(f"Could not verify SAD status: {e.message}", cause=e) from e
    return next(
        (r for r in records if r.get("hcpcs") == code or r.get("code") == code),
        None,
    )


async def check_sad_exclusion(registry: Any, code: str | None) -> SADCheckResult:
    cleaned = clean_code(code)
    if not cleaned:
        return SADCheckResult(
            code="",
            applicable=False,
            excluded=False,
            billing_route=None,
            error="HCPCS code is required",
        )

    if not is_drug_code(cleaned):
        return SADCheckResult(
            code=cleaned,
            applicable=False,
            excluded=False,
            billing_route=BillingRoute.PART_B,
            message=(
                f"Code {cleaned} is not a drug/biological code. "
                "SAD exclusion check not applicable."
            ),
        )

    try:
        record = await find_sad_record(registry, cleaned)
    except UnknownStateError as e:
        logger.warning(f"SAD status unknown for {cleaned}: {e.message}")
        return SADCheckResult(
            code=cleaned,
            applicable=True,
            excluded=None,
            billing_route=None,
            error=f"{e.message}. Check manually.",
        )

    if record is not None:
        return SADCheckResult(
            code=cleaned,
            applicable=True,
            excluded=True,
            billing_route=BillingRoute.PART_D,
            message=(
                f"EXCLUDED: Code {cleaned} is on the CMS Self-Administered Drug "
                "exclusion list. Bill under Part D, not Part B."
            ),
            details=record,
        )

    return SADCheckResult(
        code=cleaned,
        applicable=True,
        excluded=False,
        billing_route=BillingRoute.PART_B,
        message=(
            f"NOT EXCLUDED: Code {cleaned} is not on the SAD list. "
            "Eligible for Part B billing."
        ),
    )


async def evaluate_sad(context: EvaluationContext) -> dict[str, Any]:
    result = await check_sad_exclusion(
        context.services.sad_registry, context.case.procedure_code
    )
    return result.to_dict()
