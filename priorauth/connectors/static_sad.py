"""SAD registry backed by a static dataset instead of the CMS search service."""

from __future__ import annotations

from typing import Any

from priorauth.datasets import DatasetCache, DatasetName


class StaticSADRegistry:
    """Answers ``search_sad`` from the cached SAD_LIST dataset.

    Used when ``SAD_LIST_SOURCE`` is configured. Load failures surface as
    TransportError, the same as a failed search call.
    """

    service = "sad_list"

    def __init__(self, cache: DatasetCache) -> None:
        self._cache = cache

    async def search_sad(self, code: str) -> list[dict[str, Any]]:
        table = await self._cache.get(DatasetName.SAD_LIST)
        return table.search(code)
