"""Fuzzy matching of extracted labels against the catalog.

Layered flow:
1) score names (``similarity``)
2) collect and rank candidates per entity (``candidates``)
3) classify candidates into a resolution decision (``classify``)
"""

from __future__ import annotations

from .candidates import (
    AuxiliarySignals,
    MatchCandidate,
    PartialNameMatch,
    match_candidates,
    partial_name_candidates,
    rank_candidates,
)
from .classify import (
    AutoMatch,
    ConfirmSingle,
    DisambiguateMulti,
    NoMatch,
    ResolutionDecision,
    classify,
    classify_partial,
)
from .keywords import DEFAULT_KEYWORDS, KeywordDictionary
from .policy import DEFAULT_POLICY, MatchingPolicy
from .resolve import resolve_entity
from .similarity import has_common_keyword, levenshtein, name_similarity, normalize

__all__ = [
    "DEFAULT_KEYWORDS",
    "DEFAULT_POLICY",
    "AutoMatch",
    "AuxiliarySignals",
    "ConfirmSingle",
    "DisambiguateMulti",
    "KeywordDictionary",
    "MatchCandidate",
    "MatchingPolicy",
    "NoMatch",
    "PartialNameMatch",
    "ResolutionDecision",
    "classify",
    "classify_partial",
    "has_common_keyword",
    "levenshtein",
    "match_candidates",
    "name_similarity",
    "normalize",
    "partial_name_candidates",
    "rank_candidates",
    "resolve_entity",
]
