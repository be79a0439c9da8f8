"""Label-analysis service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

VISION_TIMEOUT_SECONDS = 60.0
VISION_ANALYZE_PATH = "analyze"
VISION_RETRIES = 2
VISION_CALLS_PER_SECOND = 2


@dataclass(frozen=True)
class VisionConfig:
    """Holds label-analysis API configuration values."""

    base_url: str
    api_key: str
    resilience: ResilienceConfig
    analyze_path: str = VISION_ANALYZE_PATH


def _vision_resilience(base_url: str) -> ResilienceConfig:
    calls_per_second = env_int("BREWMATCH_VISION_CALLS_PER_SECOND", VISION_CALLS_PER_SECOND)
    if calls_per_second < 1:
        raise ConfigurationError("BREWMATCH_VISION_CALLS_PER_SECOND must be at least 1")
    try:
        retry = RetryPolicy(attempts=env_int("BREWMATCH_VISION_RETRIES", VISION_RETRIES))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid BREWMATCH_VISION_RETRIES: {exc}") from exc
    return ResilienceConfig(
        name="vision",
        base_url=base_url,
        timeout_seconds=env_float("BREWMATCH_VISION_TIMEOUT_SECONDS", VISION_TIMEOUT_SECONDS),
        retry=retry,
        ratelimit=RateLimit(max_calls=calls_per_second, per_seconds=1.0),
        headers={"Accept": "application/json"},
    )


def get_vision_config(*, resilience: ResilienceConfig | None = None) -> VisionConfig:
    values = require_env_vars(("BREWMATCH_VISION_URL", "BREWMATCH_VISION_API_KEY"))
    base_url = values["BREWMATCH_VISION_URL"].rstrip("/") + "/"
    return VisionConfig(
        base_url=base_url,
        api_key=values["BREWMATCH_VISION_API_KEY"],
        resilience=resilience or _vision_resilience(base_url),
    )
