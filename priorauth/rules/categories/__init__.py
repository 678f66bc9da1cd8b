"""Prior authorization evaluators organized by determination."""

from __future__ import annotations

from .coverage_rules import (
    PolicySearchResult,
    evaluate_coverage,
    search_lcd,
    search_ncd,
)
from .eligibility_rules import (
    EligibilityDetermination,
    PayerType,
    PlanStatus,
    classify_eligibility,
    evaluate_eligibility,
)
from .ncci_rules import (
    Conflict,
    MUECheckResult,
    PTPCheckResult,
    check_mue,
    check_ptp_edits,
    evaluate_ncci,
)
from .pa_required_rules import (
    PARequiredResult,
    evaluate_pa_required,
    match_pa_required,
)
from .sad_rules import (
    BillingRoute,
    SADCheckResult,
    check_sad_exclusion,
    evaluate_sad,
    is_drug_code,
)

__all__ = [
    "BillingRoute",
    "Conflict",
    "EligibilityDetermination",
    "MUECheckResult",
    "PARequiredResult",
    "PTPCheckResult",
    "PayerType",
    "PlanStatus",
    "PolicySearchResult",
    "SADCheckResult",
    "check_mue",
    "check_ptp_edits",
    "check_sad_exclusion",
    "classify_eligibility",
    "evaluate_coverage",
    "evaluate_eligibility",
    "evaluate_ncci",
    "evaluate_pa_required",
    "evaluate_sad",
    "is_drug_code",
    "match_pa_required",
    "search_lcd",
    "search_ncd",
]
