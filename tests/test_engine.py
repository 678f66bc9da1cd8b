"""Tests for the concurrent evaluation engine."""

from __future__ import annotations

import asyncio

import pytest

from conftest import make_case, make_services
from priorauth.errors import TransportError
from priorauth.rules import (
    CaseResults,
    EvaluationContext,
    EvaluationKind,
    EvaluationResult,
    EvaluatorRegistry,
    ResultStatus,
    evaluate_case,
    run_evaluator,
)
from priorauth.rules.engine import get_default_registry


async def ok_evaluator(context):
    return {"ok": True}


async def slow_evaluator(context):
    await asyncio.sleep(5)
    return {"ok": True}


async def transport_failure(context):
    raise TransportError("CMS coverage search unavailable", "cms_coverage")


async def crashing_evaluator(context):
    raise KeyError("results")


@pytest.fixture
def context() -> EvaluationContext:
    return EvaluationContext(case=make_case(), services=make_services())


class TestEvaluationResult:
    """Tests for result slot invariants."""

    def test_payload_and_error_are_exclusive(self):
        with pytest.raises(ValueError):
            EvaluationResult(
                kind=EvaluationKind.SAD,
                status=ResultStatus.ERROR,
                generation=1,
                payload={"x": 1},
                error="bad",
            )

    def test_success_requires_payload(self):
        with pytest.raises(ValueError):
            EvaluationResult(kind=EvaluationKind.SAD, status=ResultStatus.SUCCESS, generation=1)

    def test_pending_is_not_settled(self):
        assert not EvaluationResult.pending(EvaluationKind.NCCI, 1).settled
        assert EvaluationResult.failure(EvaluationKind.NCCI, 1, "x").settled

    def test_case_results_reject_other_generation(self):
        results = CaseResults.pending("case-1", generation=2)
        with pytest.raises(ValueError):
            results.record(EvaluationResult.success(EvaluationKind.NCCI, 1, {}))

    def test_case_results_start_pending(self):
        results = CaseResults.pending("case-1", generation=1)
        assert set(results.slots) == set(EvaluationKind)
        assert not results.settled
        assert not results.eligibility_settled
        assert not results.is_medicare_advantage


class TestRunEvaluator:
    """Tests for the per-evaluator exception boundary."""

    def test_success(self, context):
        result = asyncio.run(run_evaluator(EvaluationKind.NCCI, ok_evaluator, context, 3))
        assert result.status is ResultStatus.SUCCESS
        assert result.generation == 3
        assert result.payload == {"ok": True}

    def test_timeout_becomes_error(self, context):
        result = asyncio.run(
            run_evaluator(EvaluationKind.COVERAGE, slow_evaluator, context, 1, timeout=0.05)
        )
        assert result.status is ResultStatus.ERROR
        assert result.error == "coverage check timed out after 0.05s"

    def test_pipeline_error_message_is_kept(self, context):
        result = asyncio.run(run_evaluator(EvaluationKind.COVERAGE, transport_failure, context, 1))
        assert result.error == "CMS coverage search unavailable"

    def test_unexpected_exception_is_contained(self, context):
        result = asyncio.run(run_evaluator(EvaluationKind.SAD, crashing_evaluator, context, 1))
        assert result.status is ResultStatus.ERROR
        assert result.error.startswith("Unexpected error:")


class TestEvaluateCase:
    """Tests for fan-out over a registry."""

    def test_failures_are_isolated(self, context):
        registry = EvaluatorRegistry()
        registry.register(EvaluationKind.ELIGIBILITY, ok_evaluator)
        registry.register(EvaluationKind.COVERAGE, transport_failure)
        registry.register(EvaluationKind.NCCI, crashing_evaluator)
        registry.register(EvaluationKind.SAD, slow_evaluator)

        results = asyncio.run(evaluate_case(context, registry=registry, timeout=0.05))

        assert results.settled
        assert set(results.slots) == {
            EvaluationKind.ELIGIBILITY,
            EvaluationKind.COVERAGE,
            EvaluationKind.NCCI,
            EvaluationKind.SAD,
        }
        assert results.get(EvaluationKind.ELIGIBILITY).status is ResultStatus.SUCCESS
        assert results.get(EvaluationKind.COVERAGE).status is ResultStatus.ERROR
        assert results.get(EvaluationKind.NCCI).status is ResultStatus.ERROR
        assert "timed out" in results.get(EvaluationKind.SAD).error

    def test_evaluators_run_concurrently(self, context):
        async def sleeper(ctx):
            await asyncio.sleep(0.2)
            return {}

        registry = EvaluatorRegistry()
        registry.extend((kind, sleeper) for kind in EvaluationKind)

        async def run():
            loop = asyncio.get_running_loop()
            start = loop.time()
            await evaluate_case(context, registry=registry, timeout=5)
            return loop.time() - start

        # Five 0.2s evaluators in parallel finish well under the 1s serial time
        assert asyncio.run(run()) < 0.8

    def test_empty_registry_is_honored(self, context):
        results = asyncio.run(evaluate_case(context, registry=EvaluatorRegistry()))
        assert results.slots == {}
        assert results.settled

    def test_default_registry_covers_all_kinds(self):
        registry = get_default_registry()
        assert len(registry) == len(EvaluationKind)
        for kind in EvaluationKind:
            assert kind in registry

    def test_default_evaluators_end_to_end(self, context):
        results = asyncio.run(evaluate_case(context))
        assert results.settled
        # The default case is FFS, needs no PA for 96413 and bundles with 96360
        assert results.payload(EvaluationKind.ELIGIBILITY)["payer_type"] == "FFS"
        assert results.payload(EvaluationKind.PA_REQUIRED)["required"] is False
        assert results.payload(EvaluationKind.NCCI)["ptp"]["has_conflicts"] is True
        assert results.payload(EvaluationKind.SAD)["applicable"] is False
