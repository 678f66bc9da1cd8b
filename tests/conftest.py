"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Any

import pytest

# Add project root to path for imports
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from priorauth.connectors import CoveragePolicy, EligibilityResponse  # noqa: E402
from priorauth.datasets import (  # noqa: E402
    DatasetCache,
    DatasetName,
    parse_mue_edits,
    parse_pa_required,
    parse_ptp_edits,
    parse_sad_list,
)
from priorauth.errors import TransportError  # noqa: E402
from priorauth.models import Case, PatientIdentity, ProviderIdentity  # noqa: E402
from priorauth.services import EvaluationServices  # noqa: E402

VALID_MBI = "1EG4-TE5-MK73"
VALID_NPI = "1234567893"

WISER_STATES = ["AZ", "NJ", "OH", "OK", "TX", "WA"]

PA_REQUIRED_DOC = {
    "codes": [
        {"hcpcs": "64612", "list": "Hospital OPD - Botulinum Toxin Injections", "effectiveDate": "2020-07-01"},
        {"hcpcs": "15820", "list": "Hospital OPD - Blepharoplasty", "effectiveDate": "2020-07-01"},
        {"hcpcs": "64561", "list": "WISeR Model - Electrical Nerve Stimulators", "effectiveDate": "2026-01-01", "states": WISER_STATES},
        {"hcpcs": "22551", "list": "Hospital OPD - Cervical Fusion with Disc Removal", "effectiveDate": "2021-07-01"},
        {"hcpcs": "22551", "list": "WISeR Model - Cervical Fusion", "effectiveDate": "2026-01-01", "states": WISER_STATES},
    ]
}

PTP_DOC = {
    "edits": [
        {"col1": "96413", "col2": "96360", "col1Desc": "Chemo IV infusion", "col2Desc": "IV hydration", "modifier": 1, "context": "Hydration with chemotherapy", "effectiveDate": "2005-01-01"},
        {"col1": "96413", "col2": "36591", "col1Desc": "Chemo IV infusion", "col2Desc": "Blood draw from port", "modifier": 0, "context": "Access included", "effectiveDate": "2008-01-01"},
    ]
}

MUE_DOC = {
    "edits": [
        {"cpt": "96413", "mueValue": 1, "adjudicationType": "3 Date of Service Edit: Clinical", "rationale": "Nature of Service/Procedure"},
        {"cpt": "J9271", "mueValue": 400, "adjudicationType": "3 Date of Service Edit: Clinical", "rationale": "Prescribing Information"},
    ]
}

SAD_DOC = {
    "codes": [
        {"hcpcs": "J0135", "description": "Injection, adalimumab, 20 mg", "contractor": "All A/B MACs"},
    ]
}


def make_case(**overrides: Any) -> Case:
    """Build a valid, already-normalized case. Keyword overrides replace case fields."""
    patient = overrides.pop(
        "patient",
        PatientIdentity(
            mbi=VALID_MBI,
            first_name="Jane",
            last_name="Doe",
            date_of_birth=date(1950, 3, 14),
        ),
    )
    provider = overrides.pop(
        "provider",
        ProviderIdentity(
            npi=VALID_NPI,
            name="Example Oncology Associates",
            specialty="Hematology/Oncology",
            address="100 Main St, Phoenix, AZ 85004",
            practice_zip="85004",
            practice_state="AZ",
        ),
    )
    fields: dict[str, Any] = {
        "icd10_code": "C50.911",
        "icd10_description": "Malignant neoplasm of unspecified site of right female breast",
        "procedure_code": "96413",
        "additional_codes": ("96360",),
        "clinical_summary": "Stage II breast cancer, cycle 3 of adjuvant chemotherapy.",
    }
    fields.update(overrides)
    return Case(patient=patient, provider=provider, **fields)


class FakeLoader:
    """In-memory dataset loader. A value that is an Exception is raised on load."""

    def __init__(self, datasets: dict[DatasetName, Any]) -> None:
        self.datasets = dict(datasets)
        self.sources = {name: f"memory://{name.value}" for name in datasets}
        self.calls: list[DatasetName] = []

    def has_source(self, name: DatasetName) -> bool:
        return name in self.datasets

    async def load(self, name: DatasetName) -> Any:
        self.calls.append(name)
        value = self.datasets.get(name)
        if value is None:
            raise TransportError(f"No source configured for dataset {name.value}", f"dataset:{name.value}")
        if isinstance(value, Exception):
            raise value
        return value


class FakeEligibility:
    def __init__(self, response: EligibilityResponse | Exception | None = None) -> None:
        self.response = response or EligibilityResponse(plan_status="Active", insurance_type="MB")
        self.calls = 0
        self.client_addresses: list[str | None] = []

    async def check(self, case: Case, client_address: str | None = None) -> EligibilityResponse:
        self.calls += 1
        self.client_addresses.append(client_address)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeCoverage:
    """Coverage registry double. Each attribute is a return value or an exception."""

    def __init__(
        self,
        ncd: list[CoveragePolicy] | Exception | None = None,
        lcd: list[CoveragePolicy] | Exception | None = None,
        sad: list[dict[str, Any]] | Exception | None = None,
        contractor: Any = None,
    ) -> None:
        self.ncd = ncd if ncd is not None else []
        self.lcd = lcd if lcd is not None else []
        self.sad = sad if sad is not None else []
        self.contractor = contractor
        self.sad_queries: list[str] = []

    @staticmethod
    def _answer(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    async def search_ncd(self, icd10: str, cpt: str) -> list[CoveragePolicy]:
        return self._answer(self.ncd)

    async def search_lcd(self, cpt: str, zip_code: str) -> list[CoveragePolicy]:
        return self._answer(self.lcd)

    async def search_sad(self, code: str) -> list[dict[str, Any]]:
        self.sad_queries.append(code)
        return self._answer(self.sad)

    async def find_contractor(self, zip_code: str) -> Any:
        return self._answer(self.contractor)


def sample_datasets() -> dict[DatasetName, Any]:
    return {
        DatasetName.PA_REQUIRED: parse_pa_required(PA_REQUIRED_DOC),
        DatasetName.PTP_EDITS: parse_ptp_edits(PTP_DOC),
        DatasetName.MUE_EDITS: parse_mue_edits(MUE_DOC),
    }


def make_services(
    eligibility: FakeEligibility | None = None,
    coverage: FakeCoverage | None = None,
    datasets: dict[DatasetName, Any] | None = None,
    sad_registry: Any = None,
    **extra: Any,
) -> EvaluationServices:
    coverage = coverage or FakeCoverage()
    return EvaluationServices(
        datasets=DatasetCache(FakeLoader(datasets if datasets is not None else sample_datasets())),
        coverage=coverage,
        eligibility=eligibility or FakeEligibility(),
        sad_registry=sad_registry or coverage,
        **extra,
    )


@pytest.fixture
def case() -> Case:
    return make_case()


@pytest.fixture
def pa_table():
    return parse_pa_required(PA_REQUIRED_DOC)


@pytest.fixture
def ptp_table():
    return parse_ptp_edits(PTP_DOC)


@pytest.fixture
def mue_table():
    return parse_mue_edits(MUE_DOC)


@pytest.fixture
def sad_table():
    return parse_sad_list(SAD_DOC)


@pytest.fixture
def services() -> EvaluationServices:
    return make_services()


@pytest.fixture
def ncd_policy() -> CoveragePolicy:
    return CoveragePolicy(
        identifier="110.17",
        title="Anti-Cancer Chemotherapy for Colorectal Cancer",
        covered=True,
        criteria=["FDA-approved chemotherapy agent", "Documented malignancy"],
        doc_requirements=["Pathology report"],
        url="https://www.cms.gov/medicare-coverage-database/view/ncd.aspx?ncdid=291",
    )


@pytest.fixture
def lcd_policy() -> CoveragePolicy:
    return CoveragePolicy(
        identifier="L33394",
        title="Drugs and Biologicals, Coverage of, for Label and Off-Label Uses",
        covered=True,
        criteria=["Use supported by a recognized compendium"],
        url="https://www.cms.gov/medicare-coverage-database/view/lcd.aspx?lcdid=33394",
        contractor_id="04412",
    )
