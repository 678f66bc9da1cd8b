"""Injectable single-flight cache for reference datasets.

One cache instance is owned by the service container. Concurrent first
access to a dataset shares a single in-flight load; a failed load is not
remembered, so the next access retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from .loader import DatasetLoader, DatasetName

logger = logging.getLogger(__name__)


class DatasetCache:
    def __init__(self, loader: DatasetLoader) -> None:
        self._loader = loader
        self._values: dict[DatasetName, Any] = {}
        self._inflight: dict[DatasetName, asyncio.Task[Any]] = {}
        self._epoch = 0

    @property
    def loader(self) -> DatasetLoader:
        return self._loader

    def is_loaded(self, name: DatasetName) -> bool:
        return name in self._values

    async def get(self, name: DatasetName) -> Any:
        """Return the parsed dataset, loading it on first access.

        Raises:
            TransportError: If the load fails; the failure is not cached
        """
        if name in self._values:
            return self._values[name]

        task = self._inflight.get(name)
        if task is None:
            task = asyncio.create_task(self._load(name, self._epoch))
            self._inflight[name] = task

        # A cancelled caller must not cancel the shared load
        return await asyncio.shield(task)

    async def _load(self, name: DatasetName, epoch: int) -> Any:
        try:
            value = await self._loader.load(name)
            # A load started before clear() still answers its callers but is not cached
            if epoch == self._epoch:
                self._values[name] = value
            return value
        finally:
            if self._inflight.get(name) is asyncio.current_task():
                del self._inflight[name]

    async def preload(self, names: Iterable[DatasetName] | None = None) -> dict[str, str]:
        """Load datasets eagerly; returns a status per dataset name."""
        if names is None:
            names = [n for n in DatasetName if self._loader.has_source(n)]
        names = list(names)
        results = await asyncio.gather(
            *(self.get(name) for name in names), return_exceptions=True
        )
        status: dict[str, str] = {}
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.warning(f"Preload of dataset {name.value} failed: {result}")
                status[name.value] = f"error: {result}"
            else:
                status[name.value] = "loaded"
        return status

    def clear(self) -> None:
        """Forget loaded datasets and any load still in flight."""
        self._epoch += 1
        self._inflight.clear()
        self._values.clear()
