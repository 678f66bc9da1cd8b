"""NPPES NPI Registry lookup (public API, no key needed)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import NotFoundError

from .base_api import BaseAPIClient

logger = logging.getLogger(__name__)

ENTITY_TYPE_ORGANIZATION = "NPI-2"
ADDRESS_PURPOSE_LOCATION = "LOCATION"


@dataclass(frozen=True)
class NPIRecord:
    """Provider details from the NPI registry."""

    npi: str
    active: bool
    name: str | None
    credential: str | None = None
    specialty: str | None = None
    taxonomy_code: str | None = None
    state: str | None = None
    address: str | None = None
    postal_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "npi": self.npi,
            "active": self.active,
            "name": self.name,
            "credential": self.credential,
            "specialty": self.specialty,
            "taxonomy_code": self.taxonomy_code,
            "state": self.state,
            "address": self.address,
            "postal_code": self.postal_code,
        }


def parse_npi_result(npi: str, result: Mapping[str, Any]) -> NPIRecord:
    """Convert one NPPES ``results`` entry into an NPIRecord."""
    basic = result.get("basic") or {}
    if result.get("enumeration_type") == ENTITY_TYPE_ORGANIZATION:
        name = basic.get("organization_name")
    else:
        name = f"{basic.get('first_name') or ''} {basic.get('last_name') or ''}".strip()

    taxonomies = result.get("taxonomies") or []
    taxonomy = next((t for t in taxonomies if t.get("primary")), None)
    if taxonomy is None and taxonomies:
        taxonomy = taxonomies[0]

    addresses = result.get("addresses") or []
    address = next(
        (a for a in addresses if a.get("address_purpose") == ADDRESS_PURPOSE_LOCATION),
        None,
    )
    if address is None and addresses:
        address = addresses[0]

    postal_code = None
    address_text = None
    if address:
        postal_code = (address.get("postal_code") or "")[:5] or None
        address_text = (
            f"{address.get('address_1') or ''}, {address.get('city') or ''}, "
            f"{address.get('state') or ''} {postal_code or ''}"
        ).strip()

    return NPIRecord(
        npi=npi,
        active=basic.get("status") == "A",
        name=name or None,
        credential=basic.get("credential") or None,
        specialty=(taxonomy or {}).get("desc") or None,
        taxonomy_code=(taxonomy or {}).get("code") or None,
        state=(taxonomy or {}).get("state") or (address or {}).get("state") or None,
        address=address_text,
        postal_code=postal_code,
    )


class NPIRegistryClient(BaseAPIClient):
    service = "nppes"

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(base_url or config.NPPES_BASE_URL, client, **kwargs)

    async def lookup(self, npi: str) -> NPIRecord:
        """Look up a validated NPI.

        Raises:
            NotFoundError: If the registry has no record for the NPI
            TransportError: If the registry cannot be reached
        """
        data = await self._get_json(params={"number": npi, "version": "2.1"})
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            raise NotFoundError(f"NPI {npi} not found in NPPES registry")
        return parse_npi_result(npi, results[0])
