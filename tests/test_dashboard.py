"""Tests for dashboard status mapping and the Medicare Advantage gate."""

from __future__ import annotations

from priorauth.dashboard import SlotStatus, build_dashboard, slot_status
from priorauth.rules import CaseResults, EvaluationKind, EvaluationResult

FFS_ELIGIBILITY = {"eligible": True, "payer_type": "FFS", "parts": ["A", "B"], "ma_plan_name": None}
MA_ELIGIBILITY = {"eligible": True, "payer_type": "MA", "parts": [], "ma_plan_name": "Sunrise PPO"}


def settled_results(eligibility: dict) -> CaseResults:
    results = CaseResults.pending("case-1", generation=1)
    results.record(EvaluationResult.success(EvaluationKind.ELIGIBILITY, 1, eligibility))
    results.record(EvaluationResult.success(EvaluationKind.PA_REQUIRED, 1, {"required": True}))
    results.record(EvaluationResult.success(EvaluationKind.COVERAGE, 1, {"found": False}))
    results.record(EvaluationResult.failure(EvaluationKind.NCCI, 1, "PTP edits unavailable"))
    results.record(
        EvaluationResult.success(
            EvaluationKind.SAD, 1, {"applicable": True, "excluded": None, "error": "Check manually."}
        )
    )
    return results


class TestSlotStatus:
    """Tests for per-slot display status."""

    def test_pending_is_loading(self):
        assert slot_status(EvaluationResult.pending(EvaluationKind.SAD, 1)) is SlotStatus.LOADING

    def test_eligibility_error_fails(self):
        result = EvaluationResult.failure(EvaluationKind.ELIGIBILITY, 1, "timeout")
        assert slot_status(result) is SlotStatus.FAIL

    def test_downstream_error_warns(self):
        result = EvaluationResult.failure(EvaluationKind.COVERAGE, 1, "timeout")
        assert slot_status(result) is SlotStatus.WARN

    def test_pa_required_fails(self):
        result = EvaluationResult.success(EvaluationKind.PA_REQUIRED, 1, {"required": True})
        assert slot_status(result) is SlotStatus.FAIL

    def test_coverage_not_found_is_info(self):
        result = EvaluationResult.success(EvaluationKind.COVERAGE, 1, {"found": False})
        assert slot_status(result) is SlotStatus.INFO

    def test_ncci_conflict_warns(self):
        result = EvaluationResult.success(
            EvaluationKind.NCCI, 1, {"ptp": {"has_conflicts": True}, "mue": None, "errors": []}
        )
        assert slot_status(result) is SlotStatus.WARN

    def test_sad_states(self):
        def status(payload):
            return slot_status(EvaluationResult.success(EvaluationKind.SAD, 1, payload))

        assert status({"applicable": False, "excluded": False}) is SlotStatus.INFO
        assert status({"applicable": True, "excluded": None}) is SlotStatus.WARN
        assert status({"applicable": True, "excluded": True}) is SlotStatus.FAIL
        assert status({"applicable": True, "excluded": False}) is SlotStatus.PASS


class TestBuildDashboard:
    """Tests for the MA display gate."""

    def test_ffs_shows_all_slots(self):
        view = build_dashboard(settled_results(FFS_ELIGIBILITY))
        assert not view.medicare_advantage
        assert view.alert is None
        assert [slot.kind for slot in view.slots] == list(EvaluationKind)
        assert view.settled

    def test_ma_shows_only_eligibility_and_alert(self):
        results = settled_results(MA_ELIGIBILITY)
        view = build_dashboard(results)
        assert view.medicare_advantage
        assert [slot.kind for slot in view.slots] == [EvaluationKind.ELIGIBILITY]
        assert view.slots[0].status is SlotStatus.FAIL
        assert "(Sunrise PPO)" in view.alert
        # Downstream results are still stored, only hidden
        assert results.payload(EvaluationKind.PA_REQUIRED) == {"required": True}

    def test_pending_round(self):
        view = build_dashboard(CaseResults.pending("case-2", generation=4))
        assert not view.settled
        assert all(slot.status is SlotStatus.LOADING for slot in view.slots)
        assert view.to_dict()["generation"] == 4
