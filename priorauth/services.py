"""Shared service container used by evaluators and the HTTP layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from priorauth import config
from priorauth.connectors import (
    CoverageRegistryClient,
    EligibilityClient,
    ICD10Client,
    NPIRegistryClient,
    StaticSADRegistry,
)
from priorauth.datasets import DatasetCache, DatasetLoader, DatasetName

logger = logging.getLogger(__name__)


@dataclass
class EvaluationServices:
    """Collaborators for one process.

    ``sad_registry`` is anything with an async ``search_sad(code)`` method:
    the CMS coverage client or a StaticSADRegistry.
    """

    datasets: DatasetCache
    coverage: CoverageRegistryClient
    eligibility: EligibilityClient
    sad_registry: Any
    nppes: NPIRegistryClient | None = None
    icd10: ICD10Client | None = None
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


def build_services(client: httpx.AsyncClient | None = None) -> EvaluationServices:
    """Wire the default services around one shared AsyncClient."""
    if client is None:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.HTTP_TIMEOUT_SECONDS, connect=10.0),
            follow_redirects=True,
        )
    datasets = DatasetCache(DatasetLoader(client=client))
    coverage = CoverageRegistryClient(client)

    if datasets.loader.has_source(DatasetName.SAD_LIST):
        logger.info("SAD checks use the static SAD dataset")
        sad_registry: Any = StaticSADRegistry(datasets)
    else:
        sad_registry = coverage

    return EvaluationServices(
        datasets=datasets,
        coverage=coverage,
        eligibility=EligibilityClient(client),
        sad_registry=sad_registry,
        nppes=NPIRegistryClient(client),
        icd10=ICD10Client(client),
        http_client=client,
    )
