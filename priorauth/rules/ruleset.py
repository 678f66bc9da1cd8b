"""Default evaluator set."""

from __future__ import annotations

from .categories import (
    evaluate_coverage,
    evaluate_eligibility,
    evaluate_ncci,
    evaluate_pa_required,
    evaluate_sad,
)
from .models import EvaluationKind
from .registry import EvaluatorRegistry


def register_default_evaluators(registry: EvaluatorRegistry) -> None:
    """Register the five prior authorization determinations.

    Eligibility comes first; its payer type gates what the dashboard shows.
    """
    registry.extend(
        [
            (EvaluationKind.ELIGIBILITY, evaluate_eligibility),
            (EvaluationKind.PA_REQUIRED, evaluate_pa_required),
            (EvaluationKind.COVERAGE, evaluate_coverage),
            (EvaluationKind.NCCI, evaluate_ncci),
            (EvaluationKind.SAD, evaluate_sad),
        ]
    )
