"""CMS Medicare Coverage Database search client (NCD, LCD, MAC, SAD)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import TransportError

from .adapters import Contractor, CoveragePolicy, adapt_contractor_record, adapt_policy_records
from .base_api import BaseAPIClient

logger = logging.getLogger(__name__)


class CoverageRegistryClient(BaseAPIClient):
    """Public CMS coverage search service (no API key needed)."""

    service = "cms_coverage"

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(base_url or config.CMS_COVERAGE_BASE_URL, client, **kwargs)

    async def _search(self, query: str, search_type: str, **extra: str) -> list[Any]:
        params = {"q": query, "type": search_type, "format": "json", **extra}
        data = await self._get_json(params=params)
        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected {search_type} search response shape", self.service
            )
        results = data.get("results") or []
        if not isinstance(results, list):
            raise TransportError(
                f"Unexpected {search_type} search results shape", self.service
            )
        return results

    async def search_ncd(self, icd10: str, cpt: str) -> list[CoveragePolicy]:
        """Search National Coverage Determinations by diagnosis and procedure."""
        results = await self._search(f"{icd10} {cpt}", "NCD")
        return self._adapt(results)

    async def search_lcd(self, cpt: str, zip_code: str) -> list[CoveragePolicy]:
        """Search Local Coverage Determinations by procedure and practice ZIP."""
        results = await self._search(cpt, "LCD", zip=zip_code)
        return self._adapt(results)

    async def find_contractor(self, zip_code: str) -> Contractor | None:
        """Return the MAC serving a practice ZIP, or None if the search is empty."""
        results = await self._search(f"MAC {zip_code}", "contractor")
        first = next((r for r in results if isinstance(r, dict)), None)
        return adapt_contractor_record(first) if first else None

    async def search_sad(self, code: str) -> list[dict[str, Any]]:
        """Search Self-Administered Drug exclusion lists for a drug code."""
        results = await self._search(f"SAD {code}", "SAD")
        return [r for r in results if isinstance(r, dict)]

    def _adapt(self, results: list[Any]) -> list[CoveragePolicy]:
        try:
            return adapt_policy_records(results)
        except ValueError as e:
            raise TransportError(f"Failed to parse coverage records: {e}", self.service) from e
