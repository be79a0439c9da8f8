from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from brewmatch.config import (
    ConfigurationError,
    InvalidSettingError,
    MissingConfigurationError,
    StorageConfig,
    get_database_config,
    get_matching_config,
    get_session_config,
    get_vision_config,
    require_env_vars,
)
from brewmatch.domain.matching import DEFAULT_POLICY

if TYPE_CHECKING:
    from pathlib import Path

_MATCHING_VARS = (
    "BREWMATCH_CANDIDATE_THRESHOLD",
    "BREWMATCH_AMBIGUITY_THRESHOLD",
    "BREWMATCH_AUTO_MATCH_THRESHOLD",
    "BREWMATCH_MAX_CANDIDATES",
    "BREWMATCH_PARTIAL_NAME_FALLBACK",
    "BREWMATCH_KEYWORDS",
    "BREWMATCH_KEYWORDS_FILE",
)


@pytest.fixture(autouse=True)
def _clean_matching_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _MATCHING_VARS:
        monkeypatch.delenv(name, raising=False)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)
    assert exc.value.names == ("MISSING_A", "MISSING_B")


def test_matching_config_defaults() -> None:
    config = get_matching_config()

    assert config.policy == DEFAULT_POLICY
    assert "viana" in config.keywords


def test_matching_config_reads_thresholds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BREWMATCH_AUTO_MATCH_THRESHOLD", "0.9")
    monkeypatch.setenv("BREWMATCH_MAX_CANDIDATES", "3")
    monkeypatch.setenv("BREWMATCH_PARTIAL_NAME_FALLBACK", "yes")

    policy = get_matching_config().policy

    assert policy.auto_match_threshold == pytest.approx(0.9)
    assert policy.max_candidates == 3
    assert policy.partial_name_fallback


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("BREWMATCH_CANDIDATE_THRESHOLD", "high"),
        ("BREWMATCH_AMBIGUITY_THRESHOLD", "0.5"),
        ("BREWMATCH_PARTIAL_NAME_FALLBACK", "maybe"),
    ],
)
def test_matching_config_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_matching_config()


def test_keywords_from_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    keyword_file = tmp_path / "keywords.txt"
    keyword_file.write_text("# brands\nCantillon\n\nDupont\n", encoding="utf-8")
    monkeypatch.setenv("BREWMATCH_KEYWORDS_FILE", str(keyword_file))

    keywords = get_matching_config().keywords

    assert keywords.terms == frozenset({"cantillon", "dupont"})


def test_inline_keywords_take_precedence(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BREWMATCH_KEYWORDS", "Viana, Moretti")
    monkeypatch.setenv("BREWMATCH_KEYWORDS_FILE", str(tmp_path / "missing.txt"))

    assert get_matching_config().keywords.terms == frozenset({"viana", "moretti"})


def test_missing_keyword_file_is_a_configuration_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("BREWMATCH_KEYWORDS_FILE", str(tmp_path / "missing.txt"))

    with pytest.raises(ConfigurationError, match="keyword file"):
        get_matching_config()


def test_session_ttl(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BREWMATCH_SESSION_TTL_MINUTES", "15")
    assert get_session_config().ttl == timedelta(minutes=15)

    monkeypatch.setenv("BREWMATCH_SESSION_TTL_MINUTES", "0")
    with pytest.raises(ConfigurationError):
        get_session_config()


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"

    monkeypatch.delenv("DATABASE_URI")
    monkeypatch.setenv("BREWMATCH_DATA_DIR", str(tmp_path / "data"))
    uri = get_database_config().uri

    assert uri == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve() / 'catalog.db'}"
    assert (tmp_path / "data").is_dir()


def test_storage_config_without_ensure_does_not_create_directory(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path / "absent")

    config.database_uri(ensure=False)

    assert not (tmp_path / "absent").exists()


def test_invalid_setting_names_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BREWMATCH_MAX_CANDIDATES", "lots")

    with pytest.raises(InvalidSettingError) as exc:
        get_matching_config()

    assert exc.value.name == "BREWMATCH_MAX_CANDIDATES"
    assert exc.value.value == "lots"


def test_vision_resilience_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BREWMATCH_VISION_URL", "https://vision.example/v1/")
    monkeypatch.setenv("BREWMATCH_VISION_API_KEY", "secret")
    monkeypatch.setenv("BREWMATCH_VISION_RETRIES", "5")
    monkeypatch.setenv("BREWMATCH_VISION_CALLS_PER_SECOND", "4")

    resilience = get_vision_config().resilience

    assert resilience.base_url == "https://vision.example/v1/"
    assert resilience.retry.attempts == 5
    assert resilience.ratelimit is not None
    assert resilience.ratelimit.max_calls == 4


@pytest.mark.parametrize(
    ("name", "value"),
    [("BREWMATCH_VISION_RETRIES", "-1"), ("BREWMATCH_VISION_CALLS_PER_SECOND", "0")],
)
def test_vision_resilience_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv("BREWMATCH_VISION_URL", "https://vision.example/v1")
    monkeypatch.setenv("BREWMATCH_VISION_API_KEY", "secret")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_vision_config()


def test_database_echo_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("BREWMATCH_DB_ECHO", "on")

    assert get_database_config().echo
