"""National and Local Coverage Determination searches."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from priorauth.connectors.adapters import CoveragePolicy
from priorauth.errors import PriorAuthError, TransportError
from priorauth.rules.models import EvaluationContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicySearchResult:
    found: bool
    results: list[CoveragePolicy] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_policies(cls, policies: list[CoveragePolicy]) -> PolicySearchResult:
        return cls(found=bool(policies), results=list(policies))

    @classmethod
    def unavailable(cls, error: str) -> PolicySearchResult:
        return cls(found=False, results=[], error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "found": self.found,
            "results": [p.to_dict() for p in self.results],
            "error": self.error,
        }


async def search_ncd(client: Any, icd10: str, cpt: str) -> PolicySearchResult:
    """NCD search by diagnosis and procedure. Never raises for registry failures."""
    try:
        policies = await client.search_ncd(icd10, cpt)
    except PriorAuthError as e:
        logger.warning(f"NCD search failed for {icd10}/{cpt}: {e.message}")
        return PolicySearchResult.unavailable(f"CMS NCD lookup failed: {e.message}")
    return PolicySearchResult.from_policies(policies)


async def search_lcd(client: Any, cpt: str, zip_code: str | None) -> PolicySearchResult:
    """LCD search by procedure and practice ZIP. Never raises for registry failures."""
    if not zip_code:
        return PolicySearchResult.unavailable(
            "Practice ZIP code is required for LCD lookup"
        )
    try:
        policies = await client.search_lcd(cpt, zip_code)
    except PriorAuthError as e:
        logger.warning(f"LCD search failed for {cpt}/{zip_code}: {e.message}")
        return PolicySearchResult.unavailable(f"CMS LCD lookup failed: {e.message}")
    return PolicySearchResult.from_policies(policies)


def _side_failed(side: PolicySearchResult | None) -> bool:
    return side is None or side.error is not None


async def evaluate_coverage(context: EvaluationContext) -> dict[str, Any]:
    """Run NCD and LCD searches side by side.

    An unexpected exception on one side leaves that side null. The
    evaluator only fails when neither side produced a usable answer.
    """
    case = context.case
    client = context.services.coverage
    outcomes = await asyncio.gather(
        search_ncd(client, case.icd10_code, case.procedure_code),
        search_lcd(client, case.procedure_code, case.provider.practice_zip),
        return_exceptions=True,
    )

    sides: list[PolicySearchResult | None] = []
    for label, outcome in zip(("NCD", "LCD"), outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.error(
                f"{label} search raised for case {case.case_id}: {outcome}",
                exc_info=outcome,
            )
            sides.append(None)
        else:
            sides.append(outcome)
    ncd, lcd = sides

    if _side_failed(ncd) and _side_failed(lcd):
        reasons = [
            side.error if side is not None else f"{label} lookup raised an unexpected error"
            for label, side in (("NCD", ncd), ("LCD", lcd))
        ]
        raise TransportError("; ".join(reasons), "cms_coverage")

    return {
        "ncd": ncd.to_dict() if ncd is not None else None,
        "lcd": lcd.to_dict() if lcd is not None else None,
        "found": bool((ncd and ncd.found) or (lcd and lcd.found)),
    }
