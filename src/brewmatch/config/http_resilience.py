"""Retry and throttling settings for outbound HTTP calls."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
from httpx_retries import Retry

# Gateway and throttling answers; a 500 from the analysis service is usually a bad image.
TRANSIENT_STATUSES: frozenset[int] = frozenset({408, 429, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    attempts: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 20.0
    methods: frozenset[str] = frozenset({"GET", "POST"})
    statuses: frozenset[int] = TRANSIENT_STATUSES
    exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    def __post_init__(self) -> None:
        if self.attempts < 0:
            raise ValueError("retry attempts must not be negative")

    def build(self) -> Retry:
        return Retry(
            total=self.attempts,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            respect_retry_after_header=True,
            allowed_methods=sorted(self.methods),
            status_forcelist=sorted(self.statuses),
            retry_on_exceptions=self.exceptions,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    """At most ``max_calls`` requests per ``per_seconds`` window."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    headers: dict[str, str] = field(default_factory=dict)
