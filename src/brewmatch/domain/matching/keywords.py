"""Curated keyword dictionary used by keyword-overlap detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .similarity import normalize

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_KEYWORDS: Final[tuple[str, ...]] = (
    "viana",
    "moretti",
    "peroni",
    "heineken",
    "corona",
    "guinness",
    "budweiser",
    "pilsner",
    "ipa",
    "lager",
    "stout",
    "weizen",
)


@dataclass(frozen=True, slots=True)
class KeywordDictionary:
    """Set of well-known brand and style tokens, stored normalized."""

    terms: frozenset[str]

    @classmethod
    def from_terms(cls, terms: Iterable[str]) -> KeywordDictionary:
        normalized: set[str] = set()
        for term in terms:
            value = normalize(term)
            if value and " " not in value:
                normalized.add(value)
        return cls(terms=frozenset(normalized))

    @classmethod
    def default(cls) -> KeywordDictionary:
        return cls.from_terms(DEFAULT_KEYWORDS)

    def shared(self, left: Iterable[str], right: Iterable[str]) -> frozenset[str]:
        """Keywords present among both token sequences."""

        return self.terms.intersection(left).intersection(right)

    def __contains__(self, token: object) -> bool:
        return token in self.terms

    def __len__(self) -> int:
        return len(self.terms)
