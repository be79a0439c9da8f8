"""Per-entity resolution: candidate matching followed by classification."""

from __future__ import annotations

from typing import TYPE_CHECKING

from brewmatch.domain.model import BeerRecord

from .candidates import match_candidates, partial_name_candidates
from .classify import classify, classify_partial
from .keywords import KeywordDictionary
from .policy import DEFAULT_POLICY, MatchingPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from brewmatch.domain.model import CatalogRecord, ExtractedEntity

    from .classify import ResolutionDecision


def resolve_entity(
    entity: ExtractedEntity,
    catalog: Sequence[CatalogRecord],
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
    keywords: KeywordDictionary | None = None,
    brewery_id: str | None = None,
) -> ResolutionDecision:
    """Match ``entity`` against ``catalog`` and classify the outcome.

    With ``policy.partial_name_fallback`` enabled, an entity without any fuzzy
    candidate is retried against record names containing its label tokens.
    """

    dictionary = keywords or KeywordDictionary.default()
    candidates = match_candidates(
        entity,
        catalog,
        policy=policy,
        keywords=dictionary,
        brewery_id=brewery_id,
    )
    decision = classify(candidates, policy=policy)
    if candidates or not policy.partial_name_fallback:
        return decision

    scoped = [record for record in catalog if _in_scope(record, brewery_id)]
    return classify_partial(partial_name_candidates(entity, scoped, policy=policy), policy=policy)


def _in_scope(record: CatalogRecord, brewery_id: str | None) -> bool:
    if brewery_id is None or not isinstance(record, BeerRecord):
        return True
    return record.brewery_id == brewery_id
