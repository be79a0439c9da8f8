"""Read-only projections of a session for presentation layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from brewmatch.domain.matching import AutoMatch, ConfirmSingle, DisambiguateMulti
from brewmatch.domain.model import BreweryRecord

from .choices import Confirmed, ManuallyCompleted

if TYPE_CHECKING:
    from brewmatch.domain.matching import MatchCandidate
    from brewmatch.domain.model import (
        CatalogRecord,
        EntityKind,
        ResolutionStatus,
        SessionStatus,
        UserResolutionKind,
    )

    from .session import DisambiguationSession, EntitySlot, SessionProgress


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateView:
    record_id: str
    name: str
    similarity: float
    keyword_match: bool
    auxiliary_matches: tuple[str, ...] = ()
    website: str | None = None
    email: str | None = None
    address: str | None = None
    beer_type: str | None = None
    abv: float | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EntityView:
    bottle_index: int
    kind: EntityKind
    raw_label: str
    status: ResolutionStatus
    resolution: UserResolutionKind
    candidates: tuple[CandidateView, ...]
    confidence: float | None = None
    reason: str | None = None
    selected_record_id: str | None = None
    automatic: bool = False
    committed: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionView:
    session_id: str
    status: SessionStatus
    version: int
    progress: SessionProgress
    entities: tuple[EntityView, ...]


def describe_session(session: DisambiguationSession) -> SessionView:
    return SessionView(
        session_id=session.session_id,
        status=session.status,
        version=session.version,
        progress=session.progress(),
        entities=tuple(_entity_view(slot) for slot in session.entities),
    )


def _entity_view(slot: EntitySlot) -> EntityView:
    decision = slot.decision
    candidates = tuple(_candidate_view(candidate) for candidate in decision.candidates)
    confidence: float | None = None
    reason: str | None = None
    if isinstance(decision, DisambiguateMulti):
        confidence = decision.candidates[0].name_similarity
        reason = str(decision.reason)
    elif isinstance(decision, AutoMatch | ConfirmSingle):
        confidence = decision.confidence
        reason = decision.reason if isinstance(decision, ConfirmSingle) else None
        if not candidates:
            candidates = (_record_view(decision.record, similarity=decision.confidence),)
    else:
        reason = decision.reason

    resolution = slot.resolution
    selected = None
    if isinstance(resolution, Confirmed | ManuallyCompleted) and resolution.record is not None:
        selected = resolution.record.id

    return EntityView(
        bottle_index=slot.bottle_index,
        kind=slot.kind,
        raw_label=slot.entity.raw_label,
        status=decision.status,
        resolution=resolution.kind,
        candidates=candidates,
        confidence=confidence,
        reason=reason,
        selected_record_id=selected,
        automatic=slot.is_automatic,
        committed=slot.committed,
    )


def _candidate_view(candidate: MatchCandidate) -> CandidateView:
    return _record_view(
        candidate.record,
        similarity=candidate.name_similarity,
        keyword_match=candidate.keyword_match,
        auxiliary_matches=candidate.auxiliary_signals.matched(),
    )


def _record_view(
    record: CatalogRecord,
    *,
    similarity: float,
    keyword_match: bool = False,
    auxiliary_matches: tuple[str, ...] = (),
) -> CandidateView:
    if isinstance(record, BreweryRecord):
        return CandidateView(
            record_id=record.id,
            name=record.name,
            similarity=similarity,
            keyword_match=keyword_match,
            auxiliary_matches=auxiliary_matches,
            website=record.website,
            email=record.email,
            address=record.address,
        )
    return CandidateView(
        record_id=record.id,
        name=record.name,
        similarity=similarity,
        keyword_match=keyword_match,
        auxiliary_matches=auxiliary_matches,
        beer_type=record.beer_type,
        abv=record.abv,
    )
