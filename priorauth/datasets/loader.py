"""Reference dataset loading from local JSON files or HTTP(S) URLs."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import TransportError

from .tables import parse_mue_edits, parse_pa_required, parse_ptp_edits, parse_sad_list

logger = logging.getLogger(__name__)


class DatasetName(str, Enum):
    PA_REQUIRED = "pa_required"
    PTP_EDITS = "ptp_edits"
    MUE_EDITS = "mue_edits"
    SAD_LIST = "sad_list"


PARSERS: dict[DatasetName, Callable[[Any], Any]] = {
    DatasetName.PA_REQUIRED: parse_pa_required,
    DatasetName.PTP_EDITS: parse_ptp_edits,
    DatasetName.MUE_EDITS: parse_mue_edits,
    DatasetName.SAD_LIST: parse_sad_list,
}


def default_sources() -> dict[DatasetName, str]:
    """Dataset sources from configuration. SAD is only present when configured."""
    sources = {
        DatasetName.PA_REQUIRED: config.PA_REQUIRED_SOURCE,
        DatasetName.PTP_EDITS: config.PTP_EDITS_SOURCE,
        DatasetName.MUE_EDITS: config.MUE_EDITS_SOURCE,
    }
    if config.SAD_LIST_SOURCE:
        sources[DatasetName.SAD_LIST] = config.SAD_LIST_SOURCE
    return sources


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class DatasetLoader:
    """Fetches and parses reference datasets.

    Args:
        sources: Mapping of dataset name to a local path or http(s) URL
        client: Shared AsyncClient used for URL sources
    """

    def __init__(
        self,
        sources: Mapping[DatasetName, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.sources = dict(sources if sources is not None else default_sources())
        self._client = client

    def has_source(self, name: DatasetName) -> bool:
        return name in self.sources

    async def load(self, name: DatasetName) -> Any:
        """Load one dataset and return its parsed table.

        Raises:
            TransportError: If the source is missing, unreachable, or malformed
        """
        service = f"dataset:{name.value}"
        source = self.sources.get(name)
        if not source:
            raise TransportError(f"No source configured for dataset {name.value}", service)

        if _is_url(source):
            raw = await self._fetch(source, service)
        else:
            raw = await self._read(source, service)

        try:
            document = json.loads(raw)
            table = PARSERS[name](document)
        except ValueError as e:
            raise TransportError(
                f"Failed to parse dataset {name.value}: {e}", service
            ) from e

        logger.info(f"Loaded dataset {name.value}: {len(table)} records from {source}")
        return table

    async def _read(self, source: str, service: str) -> str:
        try:
            return await asyncio.to_thread(Path(source).read_text, encoding="utf-8")
        except OSError as e:
            raise TransportError(f"Failed to read dataset file {source}: {e}", service) from e

    async def _fetch(self, url: str, service: str) -> str:
        client = self._client
        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to fetch dataset {url}: {e}", service) from e
        finally:
            if owns_client:
                await client.aclose()

        if response.status_code >= 400:
            raise TransportError(
                f"Failed to load dataset {url} ({response.status_code})",
                service,
                status_code=response.status_code,
            )
        return response.text
