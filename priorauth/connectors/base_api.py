"""Base client for external registry APIs.

Provides common functionality for the coverage, eligibility, NPI and ICD-10
clients:
- Shared httpx.AsyncClient with a configurable timeout
- Exponential backoff retry on connect errors, timeouts and 5xx responses
- Uniform TransportError reporting
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from priorauth import config
from priorauth.errors import TransportError

logger = logging.getLogger(__name__)


class RateLimitError(TransportError):
    """Raised when a service answers 429."""

    def __init__(self, message: str, service: str, retry_after: int | None = None):
        super().__init__(message, service, status_code=429)
        self.retry_after = retry_after


class BaseAPIClient:
    """Base class for external registry clients.

    Args:
        base_url: Service base URL
        client: Shared AsyncClient; one is created on demand if omitted
        max_retries: Retry attempts after the first request
        retry_delay: Initial retry delay in seconds (doubles per attempt)
    """

    service = "api"

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = client
        self._owns_client = client is None
        self._max_retries = (
            config.HTTP_MAX_RETRIES if max_retries is None else max_retries
        )
        self._retry_delay = (
            config.HTTP_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.HTTP_TIMEOUT_SECONDS, connect=10.0),
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        """Per-request headers; subclasses add authentication here."""
        return {"Accept": "application/json"}

    async def _request(
        self,
        method: str,
        url: str | None = None,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Absolute URL; defaults to the client's base URL
            params: Query parameters
            json_data: JSON request body
            headers: Additional headers

        Returns:
            HTTP response

        Raises:
            TransportError: If request fails after retries
            RateLimitError: If rate limit exceeded
        """
        request_headers = self._headers()
        if headers:
            request_headers.update(headers)

        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await self.client.request(
                    method,
                    url or self.base_url,
                    params=params,
                    json=json_data,
                    headers=request_headers,
                )

                if response.status_code == 429:
                    retry_after = response.headers.get("Retry-After")
                    retry_seconds = (
                        int(retry_after) if retry_after and retry_after.isdigit() else 60
                    )
                    raise RateLimitError(
                        f"Rate limit exceeded, retry after {retry_seconds}s",
                        self.service,
                        retry_after=retry_seconds,
                    )

                # Server errors are retried
                if response.status_code >= 500:
                    raise TransportError(
                        f"{self.service} server error ({response.status_code})",
                        self.service,
                        status_code=response.status_code,
                    )

                # Client errors are not
                if response.status_code >= 400:
                    raise TransportError(
                        f"{self.service} error ({response.status_code}): "
                        f"{response.text[:200]}",
                        self.service,
                        status_code=response.status_code,
                    )

                return response

            except RateLimitError:
                raise
            except TransportError as e:
                last_error = e
                if e.status_code and e.status_code < 500:
                    raise

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = e
            except httpx.HTTPError as e:
                raise TransportError(
                    f"{self.service} request failed: {e}", self.service
                ) from e

            if attempt < self._max_retries:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    f"{self.service} request failed, retrying in {delay}s: {last_error}"
                )
                await asyncio.sleep(delay)

        status_code = getattr(last_error, "status_code", None)
        raise TransportError(
            f"{self.service} request failed after {self._max_retries + 1} attempts: "
            f"{last_error}",
            self.service,
            status_code=status_code,
        )

    async def _get_json(self, params: dict[str, Any] | None = None, url: str | None = None) -> Any:
        response = await self._request("GET", url, params=params)
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{self.service} returned invalid JSON", self.service
            ) from e
