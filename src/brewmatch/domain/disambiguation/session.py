"""Server-held state of one submission batch.

A session tracks every entity extracted from one submission, the classifier's
decision for it, and the human (or automatic) resolution recorded so far.

Entity lifecycle::

    PENDING -> CONFIRMED | REJECTED_CREATE_NEW | MANUALLY_COMPLETED   (terminal)

Auto-matched entities start CONFIRMED (``automatic=True``) and can still be
overridden while the session is ACTIVE.

Session lifecycle::

    ACTIVE -> COMMITTING -> COMMITTED
    ACTIVE -> ABANDONED
    COMMITTING -> ACTIVE          (persistence failure, retryable)

Methods here only validate and apply transitions. Serialising concurrent
callers is the job of ``SessionRegistry``.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from brewmatch.domain.matching import AutoMatch, ConfirmSingle, DisambiguateMulti
from brewmatch.domain.model import ResolutionStatus, SessionStatus

from .choices import PENDING, Confirmed, ManuallyCompleted, UserResolution, same_outcome
from .errors import IncompleteSession, InvalidTransition

if TYPE_CHECKING:
    from collections.abc import Iterable

    from brewmatch.domain.matching import ResolutionDecision
    from brewmatch.domain.model import CatalogRecord, EntityKind, ExtractedEntity

    from .choices import UserChoice

log = logging.getLogger(__name__)

_AWAITING_HUMAN = frozenset({ResolutionStatus.CONFIRM_SINGLE, ResolutionStatus.DISAMBIGUATE_MULTI})


def new_session_id() -> str:
    """Return an opaque, unguessable session identifier."""

    return secrets.token_urlsafe(32)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class EntitySlot:
    """One extracted entity with its decision and current resolution."""

    entity: ExtractedEntity
    decision: ResolutionDecision
    resolution: UserResolution = PENDING
    committed: bool = False
    record_id: str | None = None

    @property
    def bottle_index(self) -> int:
        return self.entity.bottle_index

    @property
    def kind(self) -> EntityKind:
        return self.entity.kind

    @property
    def is_pending(self) -> bool:
        return not self.resolution.is_terminal

    @property
    def awaits_human(self) -> bool:
        return self.is_pending and self.decision.status in _AWAITING_HUMAN

    @property
    def is_automatic(self) -> bool:
        return isinstance(self.resolution, Confirmed) and self.resolution.automatic

    @property
    def known_record_id(self) -> str | None:
        """Catalog id of this entity once it is linked or persisted."""

        if self.record_id is not None:
            return self.record_id
        resolution = self.resolution
        if isinstance(resolution, Confirmed | ManuallyCompleted) and resolution.record is not None:
            return resolution.record.id
        return None

    def offered_records(self) -> tuple[CatalogRecord, ...]:
        decision = self.decision
        if isinstance(decision, AutoMatch | ConfirmSingle):
            return (decision.record,)
        if isinstance(decision, DisambiguateMulti):
            return tuple(candidate.record for candidate in decision.candidates)
        return ()

    def offers(self, record: CatalogRecord) -> bool:
        return any(
            offered.id == record.id and offered.kind is record.kind
            for offered in self.offered_records()
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionProgress:
    total: int
    resolved: int
    outstanding: int
    awaiting_human: int
    committed: int


@dataclass(slots=True, kw_only=True)
class DisambiguationSession:
    """Aggregate resolution state for one submission batch."""

    session_id: str
    created_at: datetime
    entities: list[EntitySlot] = field(default_factory=list["EntitySlot"])
    status: SessionStatus = SessionStatus.ACTIVE
    version: int = 0
    updated_at: datetime | None = None

    @classmethod
    def open(
        cls,
        resolved: Iterable[tuple[ExtractedEntity, ResolutionDecision]],
        *,
        session_id: str | None = None,
        now: datetime | None = None,
    ) -> DisambiguationSession:
        """Create a session; auto-matched entities start confirmed."""

        slots: list[EntitySlot] = []
        seen: set[tuple[int, EntityKind]] = set()
        for entity, decision in resolved:
            key = (entity.bottle_index, entity.kind)
            if key in seen:
                raise ValueError(
                    f"Duplicate {entity.kind} entity for bottle index {entity.bottle_index}"
                )
            seen.add(key)
            resolution: UserResolution = PENDING
            if isinstance(decision, AutoMatch):
                resolution = Confirmed(record=decision.record, automatic=True)
            slots.append(EntitySlot(entity=entity, decision=decision, resolution=resolution))

        created = now or _utcnow()
        return cls(
            session_id=session_id or new_session_id(),
            created_at=created,
            entities=slots,
            updated_at=created,
        )

    # Queries -----------------------------------------------------------------

    def slot(self, bottle_index: int, kind: EntityKind | None = None) -> EntitySlot:
        matches = [
            slot
            for slot in self.entities
            if slot.bottle_index == bottle_index and (kind is None or slot.kind is kind)
        ]
        if not matches:
            raise InvalidTransition(
                f"No entity for bottle index {bottle_index}"
                + (f" and kind {kind}" if kind is not None else ""),
                session_id=self.session_id,
                bottle_index=bottle_index,
            )
        if len(matches) > 1:
            raise InvalidTransition(
                f"Bottle index {bottle_index} holds several entities; specify the kind",
                session_id=self.session_id,
                bottle_index=bottle_index,
            )
        return matches[0]

    def outstanding(self) -> list[EntitySlot]:
        return [slot for slot in self.entities if slot.is_pending]

    def resolved(self) -> list[EntitySlot]:
        return [slot for slot in self.entities if not slot.is_pending]

    def awaiting_human(self) -> list[EntitySlot]:
        return [slot for slot in self.entities if slot.awaits_human]

    def ready_to_commit(self) -> list[EntitySlot]:
        """Resolved entities not yet handed to the persistence layer."""

        return [slot for slot in self.entities if not slot.is_pending and not slot.committed]

    def progress(self) -> SessionProgress:
        outstanding = self.outstanding()
        return SessionProgress(
            total=len(self.entities),
            resolved=len(self.entities) - len(outstanding),
            outstanding=len(outstanding),
            awaiting_human=sum(1 for slot in outstanding if slot.awaits_human),
            committed=sum(1 for slot in self.entities if slot.committed),
        )

    @property
    def is_live(self) -> bool:
        return self.status in {SessionStatus.ACTIVE, SessionStatus.COMMITTING}

    # Transitions -------------------------------------------------------------

    def apply_choice(
        self,
        bottle_index: int,
        choice: UserChoice,
        *,
        kind: EntityKind | None = None,
    ) -> bool:
        """Record ``choice`` for one entity; return whether state changed.

        Replaying the choice an entity already holds is a no-op.
        """

        slot = self.slot(bottle_index, kind or _choice_kind(choice))

        if slot.resolution.is_terminal and same_outcome(slot.resolution, choice):
            if slot.is_automatic and not slot.committed and self.status is SessionStatus.ACTIVE:
                slot.resolution = Confirmed(record=slot.resolution.record)  # type: ignore[union-attr]
                self._touch()
                return True
            return False

        self._require_active("record a choice")
        if slot.committed:
            raise InvalidTransition(
                f"Entity at bottle index {bottle_index} is already committed",
                session_id=self.session_id,
                bottle_index=bottle_index,
            )
        if slot.resolution.is_terminal and not slot.is_automatic:
            raise InvalidTransition(
                f"Entity at bottle index {bottle_index} is already resolved "
                f"({slot.resolution.kind})",
                session_id=self.session_id,
                bottle_index=bottle_index,
            )
        self._check_choice(slot, choice)

        previous = slot.resolution.kind
        slot.resolution = choice
        self._touch()
        log.info(
            "Session %s: bottle %s %s %s -> %s",
            self.session_id,
            bottle_index,
            slot.kind,
            previous,
            choice.kind,
        )
        return True

    def begin_commit(self) -> None:
        """ACTIVE -> COMMITTING; refuses while any entity is still pending."""

        if self.status is SessionStatus.COMMITTING:
            return
        self._require_active("start committing")
        outstanding = self.outstanding()
        if outstanding:
            raise IncompleteSession(
                f"{len(outstanding)} entities still await resolution",
                session_id=self.session_id,
                outstanding=[slot.bottle_index for slot in outstanding],
            )
        self.status = SessionStatus.COMMITTING
        self._touch()

    def cancel_commit(self) -> None:
        """COMMITTING -> ACTIVE after a failed persistence attempt."""

        if self.status is SessionStatus.COMMITTING:
            self.status = SessionStatus.ACTIVE
            self._touch()

    def mark_committed(self, persisted: Iterable[tuple[EntitySlot, str | None]]) -> None:
        for slot, record_id in persisted:
            slot.committed = True
            slot.record_id = record_id
        self._touch()

    def finish_commit(self) -> None:
        """Mark the whole batch acknowledged by the persistence layer."""

        if self.status not in {SessionStatus.ACTIVE, SessionStatus.COMMITTING}:
            raise InvalidTransition(
                f"Cannot finish commit of a {self.status} session",
                session_id=self.session_id,
            )
        if self.outstanding():
            raise IncompleteSession(
                "Cannot finish commit while entities are pending",
                session_id=self.session_id,
                outstanding=[slot.bottle_index for slot in self.outstanding()],
            )
        self.status = SessionStatus.COMMITTED
        self._touch()

    def abandon(self) -> None:
        if self.status is SessionStatus.ABANDONED:
            return
        if self.status is SessionStatus.COMMITTED:
            raise InvalidTransition(
                "A committed session cannot be abandoned", session_id=self.session_id
            )
        self.status = SessionStatus.ABANDONED
        self._touch()

    # Internals ---------------------------------------------------------------

    def _require_active(self, action: str) -> None:
        if self.status is not SessionStatus.ACTIVE:
            raise InvalidTransition(
                f"Cannot {action}: session is {self.status}",
                session_id=self.session_id,
            )

    def _check_choice(self, slot: EntitySlot, choice: UserChoice) -> None:
        record = choice.record if isinstance(choice, Confirmed | ManuallyCompleted) else None
        if record is None:
            return
        if not slot.offers(record):
            raise InvalidTransition(
                f"Record {record.id!r} was not offered for bottle index {slot.bottle_index}",
                session_id=self.session_id,
                bottle_index=slot.bottle_index,
            )

    def _touch(self) -> None:
        self.version += 1
        self.updated_at = _utcnow()


def _choice_kind(choice: UserChoice) -> EntityKind | None:
    record = choice.record if isinstance(choice, Confirmed | ManuallyCompleted) else None
    return record.kind if record is not None else None
