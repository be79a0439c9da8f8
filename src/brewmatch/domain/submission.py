"""Intake of label-analysis output into a disambiguation session."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from brewmatch.domain.disambiguation import DisambiguationSession
from brewmatch.domain.matching import DEFAULT_POLICY, AutoMatch, resolve_entity
from brewmatch.domain.model import EntityKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from brewmatch.domain.disambiguation import SessionRegistry
    from brewmatch.domain.matching import KeywordDictionary, MatchingPolicy, ResolutionDecision
    from brewmatch.domain.model import CatalogRecord, ExtractedEntity
    from brewmatch.domain.ports import CatalogReader

log = logging.getLogger(__name__)


def resolve_submission(
    entities: Iterable[ExtractedEntity],
    reader: CatalogReader,
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
    keywords: KeywordDictionary | None = None,
) -> list[tuple[ExtractedEntity, ResolutionDecision]]:
    """Classify every extracted entity against one catalog snapshot.

    Breweries are resolved first; a beer whose bottle brewery was auto-matched
    is only compared with that brewery's beers.
    """

    ordered = sorted(entities, key=lambda e: (e.bottle_index, e.kind is EntityKind.BEER))
    snapshots: dict[EntityKind, Sequence[CatalogRecord]] = {}
    known_breweries: dict[int, str] = {}
    resolved: list[tuple[ExtractedEntity, ResolutionDecision]] = []

    for entity in ordered:
        if entity.kind not in snapshots:
            snapshots[entity.kind] = list(reader.list_candidates(entity.kind))
        brewery_id = known_breweries.get(entity.bottle_index) if entity.kind is EntityKind.BEER else None
        decision = resolve_entity(
            entity,
            snapshots[entity.kind],
            policy=policy,
            keywords=keywords,
            brewery_id=brewery_id,
        )
        if entity.kind is EntityKind.BREWERY and isinstance(decision, AutoMatch):
            known_breweries[entity.bottle_index] = decision.record.id
        resolved.append((entity, decision))

    counts: defaultdict[str, int] = defaultdict(int)
    for _, decision in resolved:
        counts[decision.status] += 1
    log.info("Resolved %d entities: %s", len(resolved), dict(counts))
    return resolved


def open_session(
    entities: Iterable[ExtractedEntity],
    reader: CatalogReader,
    registry: SessionRegistry,
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
    keywords: KeywordDictionary | None = None,
    now: datetime | None = None,
) -> DisambiguationSession:
    """Resolve a submission and register a new session for it."""

    resolved = resolve_submission(entities, reader, policy=policy, keywords=keywords)
    session = DisambiguationSession.open(resolved, now=now)
    registry.add(session)
    progress = session.progress()
    log.info(
        "Opened session %s: %d entities, %d awaiting a human answer",
        session.session_id,
        progress.total,
        progress.awaiting_human,
    )
    return session
