"""Name similarity scoring.

Pure functions only. Everything here is deterministic and total: ``None`` or
empty inputs produce empty strings / zero scores rather than errors.
"""

from __future__ import annotations

import unicodedata
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .keywords import KeywordDictionary

_TOKEN_MIN_LENGTH = 4
_TOKEN_SIMILARITY = 0.8
_MIN_SHARED_TOKENS = 2


def normalize(name: str | None) -> str:
    """Lower-case, strip diacritics and punctuation, collapse whitespace."""

    if not name:
        return ""
    text = unicodedata.normalize("NFKD", name)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.casefold()
    text = "".join(ch for ch in text if not _is_punctuation(ch))
    return " ".join(text.split())


def _is_punctuation(ch: str) -> bool:
    category = unicodedata.category(ch)
    return category.startswith(("P", "S"))


def tokens(name: str | None) -> tuple[str, ...]:
    return tuple(normalize(name).split())


def levenshtein(a: str, b: str) -> int:
    """Single-character insert/delete/substitute edit distance."""

    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    current[j - 1] + 1,
                    previous[j] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def name_similarity(a: str | None, b: str | None) -> float:
    """Return a score in ``[0, 1]`` derived from the edit distance of both names.

    ``1.0`` for names that normalize identically, ``0.0`` when either input is
    empty, otherwise ``(len(longer) - distance) / len(longer)``.
    """

    if not a or not b:
        return 0.0
    left = normalize(a)
    right = normalize(b)
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    longer = max(len(left), len(right))
    return (longer - levenshtein(left, right)) / longer


def has_common_keyword(a: str | None, b: str | None, keywords: KeywordDictionary) -> bool:
    """Return whether both names share a distinctive token.

    True when a dictionary keyword occurs as a token of both names, or when at
    least two significant tokens (longer than three characters) of one name each
    closely match a token of the other name. Legal-entity suffixes and generic
    prefixes dominate plain edit distance; this recovers the signal carried by
    the one distinctive word.
    """

    left = tokens(a)
    right = tokens(b)
    if not left or not right:
        return False

    if keywords.shared(left, right):
        return True

    return _shared_significant_tokens(left, right) or _shared_significant_tokens(right, left)


def _shared_significant_tokens(source: tuple[str, ...], other: tuple[str, ...]) -> bool:
    significant = [token for token in source if len(token) >= _TOKEN_MIN_LENGTH]
    others = [token for token in other if len(token) >= _TOKEN_MIN_LENGTH]
    if len(significant) < _MIN_SHARED_TOKENS or not others:
        return False
    matched = sum(
        1
        for token in significant
        if any(name_similarity(token, candidate) > _TOKEN_SIMILARITY for candidate in others)
    )
    return matched >= _MIN_SHARED_TOKENS


def clean_url(url: str | None) -> str:
    """Reduce a website to a comparable host/path string."""

    if not url:
        return ""
    value = url.strip().casefold()
    for prefix in ("https://", "http://"):
        if value.startswith(prefix):
            value = value[len(prefix) :]
            break
    value = value.removeprefix("www.")
    return value.rstrip("/")


def normalize_address(address: str | None) -> str:
    return normalize(address)


def normalize_email(email: str | None) -> str:
    if not email:
        return ""
    return email.strip().casefold()
