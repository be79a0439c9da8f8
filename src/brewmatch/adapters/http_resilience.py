"""Async HTTP client with retries and client-side throttling."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from brewmatch.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class ResilientClient:
    """Wraps ``httpx.AsyncClient`` with a retrying transport and an optional limiter.

    One instance serves one burst of calls to a single service; use it as an
    async context manager so the connection pool is released afterwards.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=config.headers,
            transport=RetryTransport(retry=config.retry.build()),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post_json(
        self,
        url: str,
        payload: object,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """POST ``payload`` as JSON, waiting for the limiter first when one is configured."""

        if self._limiter is not None:
            await self._limiter.acquire()
        log.debug("POST %s (%s)", url, self.config.name)
        response = await self._client.post(url, json=payload, headers=headers)
        log.debug("%s answered %s for %s", self.config.name, response.status_code, url)
        return response
