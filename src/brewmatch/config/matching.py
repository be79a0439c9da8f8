"""Matching thresholds and keyword dictionary configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from brewmatch.domain.matching import DEFAULT_POLICY, KeywordDictionary, MatchingPolicy

from .env import env_bool, env_float, env_int, env_str
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    policy: MatchingPolicy = DEFAULT_POLICY
    keywords: KeywordDictionary = field(default_factory=KeywordDictionary.default)


def get_matching_config() -> MatchingConfig:
    try:
        policy = MatchingPolicy(
            candidate_threshold=env_float(
                "BREWMATCH_CANDIDATE_THRESHOLD", DEFAULT_POLICY.candidate_threshold
            ),
            ambiguity_threshold=env_float(
                "BREWMATCH_AMBIGUITY_THRESHOLD", DEFAULT_POLICY.ambiguity_threshold
            ),
            auto_match_threshold=env_float(
                "BREWMATCH_AUTO_MATCH_THRESHOLD", DEFAULT_POLICY.auto_match_threshold
            ),
            max_candidates=env_int("BREWMATCH_MAX_CANDIDATES", DEFAULT_POLICY.max_candidates),
            partial_name_fallback=env_bool(
                "BREWMATCH_PARTIAL_NAME_FALLBACK", DEFAULT_POLICY.partial_name_fallback
            ),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid matching thresholds: {exc}") from exc
    return MatchingConfig(policy=policy, keywords=_load_keywords())


def _load_keywords() -> KeywordDictionary:
    inline = env_str("BREWMATCH_KEYWORDS")
    if inline is not None:
        return KeywordDictionary.from_terms(inline.split(","))

    path = env_str("BREWMATCH_KEYWORDS_FILE")
    if path is None:
        return KeywordDictionary.default()
    try:
        lines = Path(path).expanduser().read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read keyword file {path}: {exc}") from exc
    terms = [line for line in (raw.strip() for raw in lines) if line and not line.startswith("#")]
    return KeywordDictionary.from_terms(terms)
