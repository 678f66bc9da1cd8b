"""Concurrent evaluation engine.

All registered evaluators for a case are started together. Each runs under
its own timeout and its own exception boundary, so one evaluator's failure
becomes that slot's error and never touches its siblings.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from priorauth import config as settings
from priorauth.errors import PriorAuthError

from . import ruleset
from .models import CaseResults, EvaluationContext, EvaluationKind, EvaluationResult
from .registry import Evaluator, EvaluatorRegistry, default_registry

logger = logging.getLogger(__name__)

ResultCallback = Callable[[EvaluationResult], None]


def get_default_registry() -> EvaluatorRegistry:
    # ensure default registry is populated
    if not len(default_registry):
        ruleset.register_default_evaluators(default_registry)
    return default_registry


async def run_evaluator(
    kind: EvaluationKind,
    evaluator: Evaluator,
    context: EvaluationContext,
    generation: int,
    timeout: float | None = None,
) -> EvaluationResult:
    """Run one evaluator and convert its outcome into an EvaluationResult."""
    case_id = context.case.case_id
    try:
        if timeout:
            payload = await asyncio.wait_for(evaluator(context), timeout)
        else:
            payload = await evaluator(context)
    except asyncio.TimeoutError:
        logger.warning(
            f"Evaluator {kind.value} timed out after {timeout}s "
            f"(case {case_id}, generation {generation})"
        )
        return EvaluationResult.failure(
            kind, generation, f"{kind.value} check timed out after {timeout:g}s"
        )
    except PriorAuthError as e:
        logger.warning(
            f"Evaluator {kind.value} failed (case {case_id}, generation {generation}): "
            f"{e.message}"
        )
        return EvaluationResult.failure(kind, generation, e.message)
    except Exception as e:
        logger.error(
            f"Evaluator {kind.value} raised (case {case_id}, generation {generation}): {e}",
            exc_info=True,
        )
        return EvaluationResult.failure(kind, generation, f"Unexpected error: {e}")

    return EvaluationResult.success(kind, generation, payload)


def launch_evaluators(
    context: EvaluationContext,
    generation: int,
    on_result: ResultCallback | None = None,
    registry: EvaluatorRegistry | None = None,
    timeout: float | None = None,
) -> dict[EvaluationKind, asyncio.Task[EvaluationResult]]:
    """Start every active evaluator as its own task.

    ``on_result`` is invoked as each evaluator settles, in completion order.
    Must be called from a running event loop.
    """
    if registry is None:
        registry = get_default_registry()
    timeout = settings.EVALUATOR_TIMEOUT_SECONDS if timeout is None else timeout

    async def _run(kind: EvaluationKind, evaluator: Evaluator) -> EvaluationResult:
        result = await run_evaluator(kind, evaluator, context, generation, timeout)
        if on_result is not None:
            on_result(result)
        return result

    return {
        kind: asyncio.create_task(_run(kind, evaluator), name=f"{kind.value}-{generation}")
        for kind, evaluator in registry.active_evaluators()
    }


async def evaluate_case(
    context: EvaluationContext,
    generation: int = 1,
    registry: EvaluatorRegistry | None = None,
    timeout: float | None = None,
) -> CaseResults:
    """Evaluate one case to completion and return all settled slots."""
    if registry is None:
        registry = get_default_registry()
    results = CaseResults.pending(
        context.case.case_id,
        generation,
        kinds=[kind for kind, _ in registry.active_evaluators()],
    )
    tasks = launch_evaluators(
        context, generation, on_result=results.record, registry=registry, timeout=timeout
    )
    await asyncio.gather(*tasks.values())
    return results
