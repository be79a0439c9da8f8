"""Session lifetime configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_int
from .errors import ConfigurationError

DEFAULT_SESSION_TTL_MINUTES = 60


@dataclass(frozen=True, slots=True)
class SessionConfig:
    ttl: timedelta = timedelta(minutes=DEFAULT_SESSION_TTL_MINUTES)


def get_session_config() -> SessionConfig:
    minutes = env_int("BREWMATCH_SESSION_TTL_MINUTES", DEFAULT_SESSION_TTL_MINUTES)
    if minutes <= 0:
        raise ConfigurationError("BREWMATCH_SESSION_TTL_MINUTES must be positive")
    return SessionConfig(ttl=timedelta(minutes=minutes))
