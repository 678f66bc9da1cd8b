"""Tests for the five determination evaluators."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeCoverage, FakeEligibility, FakeLoader, make_case, make_services
from priorauth.connectors import EligibilityResponse, StaticSADRegistry, parse_271_response
from priorauth.datasets import DatasetCache, DatasetName
from priorauth.errors import TransportError
from priorauth.rules.models import EvaluationContext


def context_for(services, case=None) -> EvaluationContext:
    return EvaluationContext(case=case or make_case(), services=services)


# ============================================================================
# ELIGIBILITY
# ============================================================================
class TestEligibility:
    """Tests for 271 classification."""

    def test_active_part_b_is_ffs(self):
        from priorauth.rules.categories.eligibility_rules import classify_eligibility

        result = classify_eligibility(EligibilityResponse(plan_status="Active", insurance_type="MB"))
        assert result.eligible
        assert result.payer_type.value == "FFS"
        assert result.parts == ("B",)
        assert result.ma_plan_name is None

    def test_insurance_type_ma_means_part_a_not_advantage(self):
        from priorauth.rules.categories.eligibility_rules import classify_eligibility

        result = classify_eligibility(EligibilityResponse(plan_status="1", insurance_type="MA"))
        assert not result.is_medicare_advantage
        assert result.parts == ("A",)

    def test_other_insurance_type_is_medicare_advantage(self):
        from priorauth.rules.categories.eligibility_rules import classify_eligibility

        result = classify_eligibility(
            EligibilityResponse(
                plan_status="Active", insurance_type="HN", plan_name="Sunrise Advantage PPO"
            )
        )
        assert result.is_medicare_advantage
        assert result.to_dict()["payer_type"] == "MA"
        assert result.ma_plan_name == "Sunrise Advantage PPO"

    def test_eligible_without_parts_defaults_to_a_and_b(self):
        from priorauth.rules.categories.eligibility_rules import classify_eligibility

        result = classify_eligibility(EligibilityResponse(plan_status="Active"))
        assert result.parts == ("A", "B")
        assert result.payer_type.value == "FFS"

    def test_part_flags(self):
        from priorauth.rules.categories.eligibility_rules import classify_eligibility

        result = classify_eligibility(
            EligibilityResponse(plan_status="Active", part_a=True, part_b=True,
                                part_a_effective="2015-03-01")
        )
        assert result.parts == ("A", "B")
        assert result.effective_dates["part_a"] == "2015-03-01"

    def test_inactive_and_unknown_status(self):
        from priorauth.rules.categories.eligibility_rules import (
            PlanStatus,
            classify_eligibility,
        )

        inactive = classify_eligibility(EligibilityResponse(plan_status="6"))
        unknown = classify_eligibility(EligibilityResponse())
        assert inactive.plan_status is PlanStatus.INACTIVE
        assert not inactive.eligible
        assert unknown.plan_status is PlanStatus.UNKNOWN
        assert unknown.parts == ()

    def test_parse_271_nested_subscriber(self):
        response = parse_271_response({
            "subscriber": {"planStatus": [{"statusCode": "1"}], "insuranceTypeCode": "MB"},
            "secondaryPayer": "AARP Medigap",
        })
        assert response.plan_status == "1"
        assert response.insurance_type == "MB"
        assert response.secondary_payer == "AARP Medigap"

    def test_parse_271_rejects_non_object(self):
        with pytest.raises(ValueError):
            parse_271_response(["not", "an", "object"])

    def test_evaluator_uses_eligibility_client(self):
        from priorauth.rules.categories.eligibility_rules import evaluate_eligibility

        eligibility = FakeEligibility(EligibilityResponse(plan_status="Active", insurance_type="MB"))
        payload = asyncio.run(evaluate_eligibility(context_for(make_services(eligibility=eligibility))))
        assert payload["eligible"] is True
        assert payload["effective_dates"] == {"part_a": None, "part_b": None}
        assert eligibility.calls == 1

    def test_evaluator_propagates_transport_error(self):
        from priorauth.rules.categories.eligibility_rules import evaluate_eligibility

        services = make_services(
            eligibility=FakeEligibility(TransportError("timeout", "stedi_eligibility"))
        )
        with pytest.raises(TransportError):
            asyncio.run(evaluate_eligibility(context_for(services)))


# ============================================================================
# PA REQUIRED
# ============================================================================
class TestPARequired:
    """Tests for PA-required list matching."""

    def test_code_on_national_list(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "64612", "CA")
        assert result.required
        assert result.message.startswith("PA REQUIRED: Code 64612 appears on:")
        assert result.applicable_lists == [
            {"list": "Hospital OPD - Botulinum Toxin Injections", "effective_date": "2020-07-01"}
        ]

    def test_code_not_listed(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "99213", "AZ")
        assert not result.required
        assert result.matches == ()
        assert result.message.startswith("PA NOT REQUIRED: Code 99213")

    def test_state_scoped_list_outside_state(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "64561", "CA")
        assert not result.required
        assert result.message.startswith("PA NOT REQUIRED in CA")
        # The matching entry is still reported for transparency
        assert len(result.matches) == 1
        assert result.applicable_lists == []

    def test_state_scoped_list_inside_state(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "64561", "TX")
        assert result.required

    def test_unknown_state_treats_all_matches_as_applicable(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "22551", None)
        assert result.required
        assert len(result.applicable_lists) == 2

    def test_mixed_lists_only_report_applicable(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "22551", "CA")
        assert result.required
        assert [m.list_name for m in result.matches] == [
            "Hospital OPD - Cervical Fusion with Disc Removal"
        ]

    def test_missing_code(self, pa_table):
        from priorauth.rules.categories.pa_required_rules import match_pa_required

        result = match_pa_required(pa_table, "")
        assert result.error == "No procedure code provided"
        assert not result.required

    def test_evaluator_uses_practice_state(self, services):
        from priorauth.rules.categories.pa_required_rules import evaluate_pa_required

        payload = asyncio.run(
            evaluate_pa_required(context_for(services, make_case(procedure_code="64561")))
        )
        # Default case practices in AZ
        assert payload["required"] is True
        assert payload["practice_state"] == "AZ"


# ============================================================================
# COVERAGE
# ============================================================================
class TestCoverage:
    """Tests for NCD/LCD search aggregation."""

    def test_both_sides_found(self, ncd_policy, lcd_policy):
        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        services = make_services(coverage=FakeCoverage(ncd=[ncd_policy], lcd=[lcd_policy]))
        payload = asyncio.run(evaluate_coverage(context_for(services)))
        assert payload["found"] is True
        assert payload["ncd"]["results"][0]["id"] == "110.17"
        assert payload["lcd"]["results"][0]["contractor_id"] == "04412"

    def test_nothing_found_is_not_an_error(self):
        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        payload = asyncio.run(evaluate_coverage(context_for(make_services())))
        assert payload["found"] is False
        assert payload["ncd"] == {"found": False, "results": [], "error": None}

    def test_one_side_failure_keeps_the_other(self, lcd_policy):
        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        services = make_services(
            coverage=FakeCoverage(ncd=TransportError("503", "cms_coverage"), lcd=[lcd_policy])
        )
        payload = asyncio.run(evaluate_coverage(context_for(services)))
        assert payload["ncd"]["found"] is False
        assert "CMS NCD lookup failed" in payload["ncd"]["error"]
        assert payload["lcd"]["found"] is True
        assert payload["found"] is True

    def test_unexpected_exception_nulls_that_side(self, ncd_policy):
        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        services = make_services(
            coverage=FakeCoverage(ncd=[ncd_policy], lcd=RuntimeError("boom"))
        )
        payload = asyncio.run(evaluate_coverage(context_for(services)))
        assert payload["lcd"] is None
        assert payload["ncd"]["found"] is True

    def test_both_sides_failing_raises(self):
        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        services = make_services(
            coverage=FakeCoverage(
                ncd=TransportError("down", "cms_coverage"), lcd=RuntimeError("boom")
            )
        )
        with pytest.raises(TransportError) as exc_info:
            asyncio.run(evaluate_coverage(context_for(services)))
        assert exc_info.value.service == "cms_coverage"

    def test_missing_zip_is_lcd_error(self, ncd_policy):
        from dataclasses import replace

        from priorauth.rules.categories.coverage_rules import evaluate_coverage

        case = make_case()
        case = replace(case, provider=replace(case.provider, practice_zip=None))
        services = make_services(coverage=FakeCoverage(ncd=[ncd_policy]))
        payload = asyncio.run(evaluate_coverage(context_for(services, case)))
        assert "ZIP" in payload["lcd"]["error"]
        assert payload["found"] is True


# ============================================================================
# NCCI
# ============================================================================
class TestNCCI:
    """Tests for PTP and MUE checks."""

    def test_conflict_with_modifier_allowed(self, ptp_table):
        from priorauth.rules.categories.ncci_rules import check_ptp_edits

        result = check_ptp_edits(ptp_table, ["96413", "96360"])
        assert result.has_conflicts
        assert result.message == "WARNING: 1 NCCI PTP edit conflict(s) found."
        conflict = result.conflicts[0]
        assert conflict.override_allowed
        assert "-59" in conflict.modifier_note

    def test_conflict_without_override(self, ptp_table):
        from priorauth.rules.categories.ncci_rules import check_ptp_edits

        conflict = check_ptp_edits(ptp_table, ["36591", "96413"]).conflicts[0]
        assert not conflict.override_allowed
        assert conflict.modifier_note.startswith("No modifier override")
        assert conflict.code1 == "96413"

    def test_every_pair_is_checked(self, ptp_table):
        from priorauth.rules.categories.ncci_rules import check_ptp_edits

        result = check_ptp_edits(ptp_table, ["96413", "96360", "36591"])
        assert len(result.conflicts) == 2

    def test_single_code_has_no_conflicts(self, ptp_table):
        from priorauth.rules.categories.ncci_rules import check_ptp_edits

        result = check_ptp_edits(ptp_table, ["96413"])
        assert not result.has_conflicts
        assert result.message.startswith("No NCCI PTP conflicts")

    def test_mue(self, mue_table):
        from priorauth.rules.categories.ncci_rules import check_mue

        assert check_mue(mue_table, "j9271").mue_value == 400
        missing = check_mue(mue_table, "99213")
        assert not missing.found
        assert missing.mue_value is None

    def test_evaluator_payload(self, services):
        from priorauth.rules.categories.ncci_rules import evaluate_ncci

        payload = asyncio.run(evaluate_ncci(context_for(services)))
        assert payload["ptp"]["has_conflicts"] is True
        assert payload["mue"]["mue_value"] == 1
        assert payload["errors"] == []

    def test_one_dataset_missing_is_partial(self, ptp_table):
        from priorauth.rules.categories.ncci_rules import evaluate_ncci

        services = make_services(datasets={DatasetName.PTP_EDITS: ptp_table})
        payload = asyncio.run(evaluate_ncci(context_for(services)))
        assert payload["ptp"] is not None
        assert payload["mue"] is None
        assert len(payload["errors"]) == 1

    def test_both_datasets_missing_raises(self):
        from priorauth.rules.categories.ncci_rules import evaluate_ncci

        services = make_services(datasets={})
        with pytest.raises(TransportError):
            asyncio.run(evaluate_ncci(context_for(services)))


# ============================================================================
# SAD
# ============================================================================
class TestSAD:
    """Tests for the tri-state SAD exclusion check."""

    def test_non_drug_code_not_applicable(self):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = FakeCoverage()
        result = asyncio.run(check_sad_exclusion(registry, "96413"))
        assert not result.applicable
        assert result.billing_route.value == "partB"
        assert "not a drug/biological code" in result.message
        assert registry.sad_queries == []

    def test_excluded_drug_routes_to_part_d(self):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = FakeCoverage(sad=[{"hcpcs": "J0135", "description": "adalimumab"}])
        result = asyncio.run(check_sad_exclusion(registry, "j0135"))
        assert result.excluded is True
        assert result.billing_route.value == "partD"
        assert result.message.startswith("EXCLUDED")
        assert result.details["description"] == "adalimumab"

    def test_unlisted_drug_stays_part_b(self):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = FakeCoverage(sad=[{"hcpcs": "J0135"}])
        result = asyncio.run(check_sad_exclusion(registry, "J9271"))
        assert result.excluded is False
        assert result.billing_route.value == "partB"
        assert result.message.startswith("NOT EXCLUDED")

    def test_registry_failure_is_unknown_not_false(self):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = FakeCoverage(sad=TransportError("timeout", "cms_coverage"))
        result = asyncio.run(check_sad_exclusion(registry, "Q5101"))
        assert result.applicable
        assert result.excluded is None
        assert result.billing_route is None
        assert result.unknown
        assert result.error.endswith("Check manually.")

    def test_static_registry(self, sad_table):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = StaticSADRegistry(DatasetCache(FakeLoader({DatasetName.SAD_LIST: sad_table})))
        result = asyncio.run(check_sad_exclusion(registry, "J0135"))
        assert result.excluded is True

    def test_static_registry_missing_dataset_is_unknown(self):
        from priorauth.rules.categories.sad_rules import check_sad_exclusion

        registry = StaticSADRegistry(DatasetCache(FakeLoader({})))
        result = asyncio.run(check_sad_exclusion(registry, "J0135"))
        assert result.excluded is None

    def test_evaluator_checks_primary_code(self):
        from priorauth.rules.categories.sad_rules import evaluate_sad

        coverage = FakeCoverage()
        services = make_services(coverage=coverage)
        case = make_case(procedure_code="J9271", additional_codes=("J0135",))
        payload = asyncio.run(evaluate_sad(context_for(services, case)))
        assert payload["code"] == "J9271"
        assert coverage.sad_queries == ["J9271"]
