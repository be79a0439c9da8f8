from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from httpx_retries import Retry

from brewmatch.adapters.http_resilience import ResilientClient
from brewmatch.config import RateLimit, ResilienceConfig, RetryPolicy


def test_client_applies_base_url_and_headers() -> None:
    config = ResilienceConfig(
        name="vision",
        base_url="https://vision.example/v1/",
        headers={"Accept": "application/json"},
    )

    client = ResilientClient(config)
    inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]

    assert inner.base_url == httpx.URL("https://vision.example/v1/")
    assert inner.headers["Accept"] == "application/json"
    asyncio.run(client.aclose())


def test_post_json_sends_payload_through_limiter() -> None:
    seen: list[tuple[str, object]] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    async def scenario() -> list[int]:
        config = ResilienceConfig(
            name="vision",
            base_url="https://vision.example/",
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        )
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
                base_url="https://vision.example/", transport=httpx.MockTransport(handler)
            )
            responses = [await client.post_json("analyze", {"n": n}) for n in range(3)]
        return [response.status_code for response in responses]

    statuses = asyncio.run(scenario())

    assert statuses == [200, 200, 200]
    assert seen == [("https://vision.example/analyze", {"n": n}) for n in range(3)]


def test_retry_policy_builds_transport_settings() -> None:
    policy = RetryPolicy(attempts=4)

    assert isinstance(policy.build(), Retry)
    assert 503 in policy.statuses
    assert 500 not in policy.statuses


def test_retry_policy_rejects_negative_attempts() -> None:
    with pytest.raises(ValueError, match="negative"):
        RetryPolicy(attempts=-1)
