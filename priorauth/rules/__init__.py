"""Evaluation engine for prior authorization determinations."""

from .engine import evaluate_case, launch_evaluators, run_evaluator
from .models import (
    CaseResults,
    EvaluationContext,
    EvaluationKind,
    EvaluationResult,
    ResultStatus,
)
from .registry import EvaluatorRegistry, default_registry

__all__ = [
    "evaluate_case",
    "launch_evaluators",
    "run_evaluator",
    "CaseResults",
    "EvaluationContext",
    "EvaluationKind",
    "EvaluationResult",
    "EvaluatorRegistry",
    "ResultStatus",
    "default_registry",
]
