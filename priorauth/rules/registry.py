"""Evaluator registry for managing active evaluators."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from .models import EvaluationContext, EvaluationKind

Evaluator = Callable[[EvaluationContext], Awaitable[dict[str, Any]]]


class EvaluatorRegistry:
    def __init__(self) -> None:
        self._evaluators: dict[EvaluationKind, Evaluator] = {}

    def register(self, kind: EvaluationKind, evaluator: Evaluator) -> None:
        self._evaluators[kind] = evaluator

    def extend(self, evaluators: Iterable[tuple[EvaluationKind, Evaluator]]) -> None:
        for kind, evaluator in evaluators:
            self.register(kind, evaluator)

    def active_evaluators(self) -> tuple[tuple[EvaluationKind, Evaluator], ...]:
        return tuple(self._evaluators.items())

    def __contains__(self, kind: object) -> bool:
        return kind in self._evaluators

    def __len__(self) -> int:
        return len(self._evaluators)


default_registry = EvaluatorRegistry()
