"""Stedi 270/271 eligibility client and 271 response parsing."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import TransportError
from priorauth.models import Case
from priorauth.utils import to_x12_date
from priorauth.validation import clean_mbi

from .base_api import BaseAPIClient

logger = logging.getLogger(__name__)

# Health benefit plan coverage
SERVICE_TYPE_PLAN_COVERAGE = "30"
TRADING_PARTNER_CMS = "CMS"


@dataclass(frozen=True)
class EligibilityResponse:
    """The fields of a 271 response the classifier needs."""

    plan_status: str | None = None
    insurance_type: str | None = None
    part_a: bool = False
    part_b: bool = False
    part_a_effective: str | None = None
    part_b_effective: str | None = None
    secondary_payer: str | None = None
    plan_name: str | None = None
    payer_name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _plan_status_code(value: Any) -> str | None:
    """Plan status may be a scalar or a list of benefit entries; first entry wins."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, Mapping):
        value = value.get("statusCode") or value.get("status")
    if value is None or value == "":
        return None
    return str(value)


def parse_271_response(data: Mapping[str, Any]) -> EligibilityResponse:
    """Reduce a 271 JSON response to an EligibilityResponse.

    Plan status and insurance type may be top-level or nested under
    ``subscriber``.
    """
    if not isinstance(data, Mapping):
        raise ValueError("Eligibility response must be a JSON object")
    subscriber = data.get("subscriber")
    if not isinstance(subscriber, Mapping):
        subscriber = {}

    plan_status = data.get("planStatus")
    if plan_status is None:
        plan_status = subscriber.get("planStatus")

    insurance_type = data.get("insuranceTypeCode") or subscriber.get("insuranceTypeCode")

    return EligibilityResponse(
        plan_status=_plan_status_code(plan_status),
        insurance_type=str(insurance_type) if insurance_type else None,
        part_a=bool(data.get("partA")),
        part_b=bool(data.get("partB")),
        part_a_effective=data.get("partAEffective") or None,
        part_b_effective=data.get("partBEffective") or None,
        secondary_payer=data.get("secondaryPayer") or None,
        plan_name=data.get("planName") or None,
        payer_name=data.get("payerName") or None,
        raw=dict(data),
    )


def build_eligibility_request(case: Case, control_number: str | None = None) -> dict[str, Any]:
    """Build the Stedi eligibility request body for a case."""
    patient = case.patient
    provider = case.provider
    return {
        "controlNumber": control_number or str(int(time.time() * 1000))[-9:],
        "tradingPartnerServiceId": TRADING_PARTNER_CMS,
        "provider": {
            "organizationName": provider.name or "Provider",
            "npi": provider.npi,
        },
        "subscriber": {
            "memberId": clean_mbi(patient.mbi),
            "firstName": patient.first_name.upper(),
            "lastName": patient.last_name.upper(),
            "dateOfBirth": to_x12_date(patient.date_of_birth),
        },
        "encounter": {"serviceTypeCodes": [SERVICE_TYPE_PLAN_COVERAGE]},
    }


class EligibilityClient(BaseAPIClient):
    """Real-time Medicare eligibility via the Stedi 270/271 API.

    ``STEDI_API_KEY`` is read on every call so it can be rotated without a
    restart.
    """

    service = "stedi_eligibility"

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(base_url or config.STEDI_ELIGIBILITY_URL, client, **kwargs)

    async def check(self, case: Case, client_address: str | None = None) -> EligibilityResponse:
        """Run a 270 inquiry for the case's patient.

        ``client_address`` is the end user's address, forwarded to Stedi as
        ``X-Forwarded-For``.

        Raises:
            TransportError: If the key is missing, the call fails, or the
                response cannot be parsed
        """
        api_key = os.getenv("STEDI_API_KEY")
        if not api_key:
            raise TransportError("STEDI_API_KEY not configured", self.service)

        payload = build_eligibility_request(case)
        logger.info(
            f"Eligibility inquiry for case {case.case_id} "
            f"(control {payload['controlNumber']})"
        )
        response = await self._request(
            "POST",
            json_data=payload,
            headers={
                "Authorization": f"Key {api_key}",
                "X-Forwarded-For": client_address or "0.0.0.0",
            },
        )
        data = self._decode(response)
        try:
            return parse_271_response(data)
        except ValueError as e:
            raise TransportError(f"Failed to parse 271 response: {e}", self.service) from e
