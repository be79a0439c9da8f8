"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, InvalidSettingError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .matching import MatchingConfig, get_matching_config
from .session import SessionConfig, get_session_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .vision import VisionConfig, get_vision_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidSettingError",
    "MatchingConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SessionConfig",
    "StorageConfig",
    "VisionConfig",
    "get_database_config",
    "get_matching_config",
    "get_session_config",
    "get_storage_config",
    "get_vision_config",
    "require_env_vars",
]
