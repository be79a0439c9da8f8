"""Candidate matching of one extracted entity against catalog records.

Responsibilities of this stage:
- score every catalog record of the same kind against the extracted label
- drop unrelated records (low similarity and no keyword overlap)
- attach auxiliary agreement signals (website/email/address, beer type/ABV)
- return candidates ranked best first

The matcher is a pure read against a catalog snapshot and is safe to call
concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from brewmatch.domain.model import BeerRecord, BreweryRecord, EntityKind

from .keywords import KeywordDictionary
from .policy import DEFAULT_POLICY, MatchingPolicy
from .similarity import (
    clean_url,
    has_common_keyword,
    name_similarity,
    normalize,
    normalize_address,
    normalize_email,
    tokens,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from brewmatch.domain.model import AuxiliaryFields, CatalogRecord, ExtractedEntity

log = logging.getLogger(__name__)

_PARTIAL_TOKEN_MIN_LENGTH = 3


@dataclass(frozen=True, slots=True, kw_only=True)
class AuxiliarySignals:
    """Agreement of structured hints; ``None`` when either side lacks the field."""

    website: bool | None = None
    email: bool | None = None
    address: bool | None = None
    beer_type: bool | None = None
    abv: bool | None = None

    @property
    def count(self) -> int:
        return sum(
            1
            for value in (self.website, self.email, self.address, self.beer_type, self.abv)
            if value is True
        )

    def matched(self) -> tuple[str, ...]:
        names = ("website", "email", "address", "beer_type", "abv")
        return tuple(name for name in names if getattr(self, name) is True)


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchCandidate:
    record: CatalogRecord
    name_similarity: float
    keyword_match: bool
    auxiliary_signals: AuxiliarySignals = AuxiliarySignals()

    @property
    def record_id(self) -> str:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name


def candidate_sort_key(candidate: MatchCandidate) -> tuple[float, int, int, str, str]:
    """Best first: similarity, keyword overlap, auxiliary agreement, then name/id."""

    return (
        -candidate.name_similarity,
        0 if candidate.keyword_match else 1,
        -candidate.auxiliary_signals.count,
        normalize(candidate.record.name),
        candidate.record.id,
    )


def rank_candidates(candidates: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    return sorted(candidates, key=candidate_sort_key)


def match_candidates(
    entity: ExtractedEntity,
    catalog: Iterable[CatalogRecord],
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
    keywords: KeywordDictionary | None = None,
    brewery_id: str | None = None,
) -> list[MatchCandidate]:
    """Return ranked candidates for ``entity`` out of ``catalog``.

    ``brewery_id`` restricts beer matching to one brewery once the brewery on
    the same bottle is known. An empty result is not an error: the caller
    treats it as "no match".
    """

    dictionary = keywords or KeywordDictionary.default()
    survivors: list[MatchCandidate] = []
    considered = 0
    for record in catalog:
        if record.kind is not entity.kind:
            continue
        if brewery_id is not None and isinstance(record, BeerRecord):
            if record.brewery_id != brewery_id:
                continue
        considered += 1

        similarity = name_similarity(entity.raw_label, record.name)
        keyword_match = has_common_keyword(entity.raw_label, record.name, dictionary)
        if not (similarity > policy.candidate_threshold or keyword_match):
            continue

        candidate = MatchCandidate(
            record=record,
            name_similarity=similarity,
            keyword_match=keyword_match,
            auxiliary_signals=auxiliary_signals(entity.auxiliary_fields, record, policy=policy),
        )
        log.debug(
            "Candidate %r for %s %r: similarity=%.3f keyword=%s auxiliary=%s",
            record.name,
            entity.kind,
            entity.raw_label,
            similarity,
            keyword_match,
            candidate.auxiliary_signals.matched(),
        )
        survivors.append(candidate)

    ranked = rank_candidates(survivors)
    log.debug(
        "Matched %s %r against %d records: %d candidates",
        entity.kind,
        entity.raw_label,
        considered,
        len(ranked),
    )
    return ranked


def auxiliary_signals(
    fields: AuxiliaryFields,
    record: CatalogRecord,
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> AuxiliarySignals:
    if isinstance(record, BreweryRecord):
        return AuxiliarySignals(
            website=_compare(clean_url(fields.website), clean_url(record.website)),
            email=_compare(normalize_email(fields.email), normalize_email(record.email)),
            address=_compare_near(
                normalize_address(fields.address),
                normalize_address(record.address),
                threshold=policy.auxiliary_near_threshold,
            ),
        )
    return AuxiliarySignals(
        beer_type=_compare(normalize(fields.beer_type), normalize(record.beer_type)),
        abv=_compare_abv(fields.abv, record.abv, tolerance=policy.abv_tolerance),
    )


def _compare(left: str, right: str) -> bool | None:
    if not left or not right:
        return None
    return left == right


def _compare_near(left: str, right: str, *, threshold: float) -> bool | None:
    if not left or not right:
        return None
    return left == right or name_similarity(left, right) > threshold


def _compare_abv(left: float | None, right: float | None, *, tolerance: float) -> bool | None:
    if left is None or right is None:
        return None
    return abs(left - right) <= tolerance + 1e-9


@dataclass(frozen=True, slots=True, kw_only=True)
class PartialNameMatch:
    record: CatalogRecord
    ratio: float
    matching_tokens: tuple[str, ...]


def partial_name_candidates(
    entity: ExtractedEntity,
    catalog: Iterable[CatalogRecord],
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> list[PartialNameMatch]:
    """Fallback scoring by the share of label tokens contained in a record name."""

    label_tokens = tokens(entity.raw_label)
    if not label_tokens:
        return []

    matches: list[PartialNameMatch] = []
    for record in catalog:
        if record.kind is not entity.kind:
            continue
        record_name = normalize(record.name)
        if not record_name:
            continue
        matching = tuple(
            token
            for token in label_tokens
            if len(token) >= _PARTIAL_TOKEN_MIN_LENGTH and token in record_name
        )
        ratio = len(matching) / len(label_tokens)
        if ratio >= policy.partial_min_ratio:
            matches.append(PartialNameMatch(record=record, ratio=ratio, matching_tokens=matching))

    matches.sort(key=lambda match: (-match.ratio, normalize(match.record.name), match.record.id))
    return matches
