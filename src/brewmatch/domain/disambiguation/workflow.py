"""Confirmation workflow: applies user actions to sessions and commits them.

Every operation takes the session's lock from the registry, so requests for
one session are serialised. Persistence goes through a catalog unit of work;
a failing commit leaves the session ACTIVE with nothing marked committed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from brewmatch.domain.model import EntityKind, SessionStatus
from brewmatch.domain.ports import ResolutionAction, ResolvedBatch, ResolvedEntity

from .choices import Confirmed, ManuallyCompleted, RejectedCreateNew, same_outcome
from .completion import merge_completion, validate_completion
from .errors import InvalidCompletion, InvalidTransition, StaleSession, UpstreamUnavailable
from .views import describe_session

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from brewmatch.domain.model import CatalogRecord
    from brewmatch.domain.ports import CatalogUnitOfWork, PersistedEntity

    from .choices import UserChoice
    from .registry import SessionRegistry
    from .session import DisambiguationSession, EntitySlot, SessionProgress
    from .views import SessionView

log = logging.getLogger(__name__)

type UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


class ConfirmationWorkflow:
    def __init__(self, registry: SessionRegistry, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self.registry = registry
        self._unit_of_work_factory = unit_of_work_factory

    def record_user_choice(
        self,
        session_id: str,
        bottle_index: int,
        choice: UserChoice,
        *,
        kind: EntityKind | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """Apply a human choice to one entity; return whether anything changed.

        Manually completed fields are merged over what the label provided and
        validated before they are stored.
        """

        with self.registry.locked(session_id) as session:
            target_kind = kind or _record_kind(choice)
            slot = session.slot(bottle_index, target_kind)
            prepared = self._prepare_choice(session, slot, choice)
            if expected_version is not None and expected_version != session.version:
                # A retried request that already landed is a no-op, not a conflict.
                if slot.resolution.is_terminal and same_outcome(slot.resolution, prepared):
                    return False
                raise StaleSession(
                    f"Session {session_id} moved from version {expected_version} "
                    f"to {session.version}",
                    session_id=session_id,
                    expected=expected_version,
                    actual=session.version,
                )
            return session.apply_choice(bottle_index, prepared, kind=slot.kind)

    def choose_candidate(
        self,
        session_id: str,
        bottle_index: int,
        record_id: str,
        *,
        kind: EntityKind | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """Confirm one of the offered records by id."""

        with self.registry.locked(session_id) as session:
            slot = session.slot(bottle_index, kind)
            record = _offered_record(session, slot, record_id)
            return self.record_user_choice(
                session_id,
                bottle_index,
                Confirmed(record=record),
                kind=slot.kind,
                expected_version=expected_version,
            )

    def complete_manually(
        self,
        session_id: str,
        bottle_index: int,
        fields: Mapping[str, object],
        *,
        kind: EntityKind | None = None,
        record_id: str | None = None,
        expected_version: int | None = None,
    ) -> bool:
        """Record user-supplied fields, optionally on top of an offered record."""

        with self.registry.locked(session_id) as session:
            slot = session.slot(bottle_index, kind)
            record = _offered_record(session, slot, record_id) if record_id else None
            choice = ManuallyCompleted(
                fields={key: str(value) for key, value in fields.items() if value is not None},
                record=record,
            )
            return self.record_user_choice(
                session_id,
                bottle_index,
                choice,
                kind=slot.kind,
                expected_version=expected_version,
            )

    def save_verified_only(self, session_id: str) -> list[EntitySlot]:
        """Persist every resolved entity now and keep the rest for later.

        Returns the entities that still await resolution, plus new beers held
        back until the brewery on their bottle is resolved. A session with
        nothing left is completed and released.
        """

        with self.registry.locked(session_id) as session:
            if session.status is not SessionStatus.ACTIVE:
                raise InvalidTransition(
                    f"Cannot save a {session.status} session", session_id=session_id
                )
            ready: list[EntitySlot] = []
            held: list[EntitySlot] = []
            for slot in session.ready_to_commit():
                (held if _needs_pending_brewery(session, slot) else ready).append(slot)
            if ready:
                persisted = self._persist(session, ready)
                session.mark_committed(_pair(ready, persisted))
            outstanding = [
                slot
                for slot in session.entities
                if slot.is_pending or any(slot is other for other in held)
            ]
            log.info(
                "Session %s: saved %d verified entities, %d outstanding (%d held back)",
                session_id,
                len(ready),
                len(outstanding),
                len(held),
            )
            if not outstanding:
                session.finish_commit()
                self.registry.discard(session_id)
            return outstanding

    def confirm_all(self, session_id: str) -> SessionProgress:
        """Move the session to COMMITTING; refuses while any entity is pending."""

        with self.registry.locked(session_id) as session:
            session.begin_commit()
            return session.progress()

    def commit(self, session_id: str) -> list[PersistedEntity]:
        """Persist the whole batch in one unit of work.

        On success the session is COMMITTED and released. On failure the
        session returns to ACTIVE and ``UpstreamUnavailable`` propagates.
        """

        with self.registry.locked(session_id) as session:
            if session.status is SessionStatus.ACTIVE:
                session.begin_commit()
            if session.status is not SessionStatus.COMMITTING:
                raise InvalidTransition(
                    f"Cannot commit a {session.status} session", session_id=session_id
                )
            ready = session.ready_to_commit()
            try:
                persisted = self._persist(session, ready) if ready else []
            except Exception:
                session.cancel_commit()
                raise
            session.mark_committed(_pair(ready, persisted))
            session.finish_commit()
            self.registry.discard(session_id)
            log.info("Session %s committed (%d entities)", session_id, len(persisted))
            return persisted

    def abandon(self, session_id: str) -> None:
        with self.registry.locked(session_id) as session:
            session.abandon()
            self.registry.discard(session_id)
            log.info("Session %s abandoned", session_id)

    def describe(self, session_id: str) -> SessionView:
        with self.registry.locked(session_id) as session:
            return describe_session(session)

    # Internals ---------------------------------------------------------------

    def _prepare_choice(
        self,
        session: DisambiguationSession,
        slot: EntitySlot,
        choice: UserChoice,
    ) -> UserChoice:
        if isinstance(choice, ManuallyCompleted):
            result = validate_completion(slot.entity, choice.fields, record=choice.record)
            if not result.is_valid:
                problems = [*(f"missing {name}" for name in result.missing_required), *result.issues]
                raise InvalidCompletion(
                    f"Invalid completion for bottle index {slot.bottle_index}: "
                    + "; ".join(problems),
                    session_id=session.session_id,
                    bottle_index=slot.bottle_index,
                    missing_fields=result.missing_required,
                )
            if result.missing_recommended:
                log.info(
                    "Session %s: bottle %s completed without %s",
                    session.session_id,
                    slot.bottle_index,
                    ", ".join(result.missing_recommended),
                )
            return ManuallyCompleted(fields=result.fields, record=choice.record)
        if isinstance(choice, RejectedCreateNew) and not merge_completion(slot.entity, {}).get(
            "name"
        ):
            raise InvalidCompletion(
                f"Bottle index {slot.bottle_index} has no readable name; complete it manually",
                session_id=session.session_id,
                bottle_index=slot.bottle_index,
                missing_fields=("name",),
            )
        return choice

    def _persist(
        self,
        session: DisambiguationSession,
        slots: Sequence[EntitySlot],
    ) -> list[PersistedEntity]:
        batch = build_batch(session, slots)
        try:
            with self._unit_of_work_factory() as uow:
                persisted = uow.repositories.catalog.commit_resolved_entities(batch)
                uow.commit()
        except UpstreamUnavailable as exc:
            exc.session_id = exc.session_id or session.session_id
            log.exception(
                "Session %s: catalog rejected %d entities", session.session_id, len(batch)
            )
            raise
        return persisted


def build_batch(session: DisambiguationSession, slots: Sequence[EntitySlot]) -> ResolvedBatch:
    """Translate resolved slots into persistence instructions, breweries first."""

    ordered = sorted(slots, key=lambda slot: (slot.kind is EntityKind.BEER, slot.bottle_index))
    return ResolvedBatch(
        session_id=session.session_id,
        entities=tuple(_resolved_entity(session, slot) for slot in ordered),
    )


def _resolved_entity(session: DisambiguationSession, slot: EntitySlot) -> ResolvedEntity:
    resolution = slot.resolution
    if isinstance(resolution, Confirmed):
        return ResolvedEntity(
            bottle_index=slot.bottle_index,
            kind=slot.kind,
            action=ResolutionAction.LINK,
            record_id=resolution.record.id,
        )
    if isinstance(resolution, ManuallyCompleted) and resolution.record is not None:
        return ResolvedEntity(
            bottle_index=slot.bottle_index,
            kind=slot.kind,
            action=ResolutionAction.LINK,
            record_id=resolution.record.id,
            fields=dict(resolution.fields),
        )
    if isinstance(resolution, ManuallyCompleted):
        fields = dict(resolution.fields)
    elif isinstance(resolution, RejectedCreateNew):
        fields = merge_completion(slot.entity, {})
    else:
        raise InvalidTransition(
            f"Bottle index {slot.bottle_index} is still pending",
            session_id=session.session_id,
            bottle_index=slot.bottle_index,
        )
    if slot.kind is EntityKind.BEER:
        brewery_id = _brewery_id_for(session, slot.bottle_index)
        if brewery_id is not None:
            fields.setdefault("brewery_id", brewery_id)
    return ResolvedEntity(
        bottle_index=slot.bottle_index,
        kind=slot.kind,
        action=ResolutionAction.CREATE,
        fields=fields,
    )


def _brewery_id_for(session: DisambiguationSession, bottle_index: int) -> str | None:
    for slot in session.entities:
        if slot.bottle_index == bottle_index and slot.kind is EntityKind.BREWERY:
            return slot.known_record_id
    return None


def _offered_record(
    session: DisambiguationSession, slot: EntitySlot, record_id: str
) -> CatalogRecord:
    for record in slot.offered_records():
        if record.id == record_id:
            return record
    raise InvalidTransition(
        f"Record {record_id!r} was not offered for bottle index {slot.bottle_index}",
        session_id=session.session_id,
        bottle_index=slot.bottle_index,
    )


def _record_kind(choice: UserChoice) -> EntityKind | None:
    if isinstance(choice, Confirmed | ManuallyCompleted) and choice.record is not None:
        return choice.record.kind
    return None


def _pair(
    slots: Sequence[EntitySlot],
    persisted: Sequence[PersistedEntity],
) -> list[tuple[EntitySlot, str | None]]:
    by_key = {(item.bottle_index, item.kind): item.record_id for item in persisted}
    return [(slot, by_key.get((slot.bottle_index, slot.kind))) for slot in slots]


def _needs_pending_brewery(session: DisambiguationSession, slot: EntitySlot) -> bool:
    """A beer to be created whose bottle still has an unresolved brewery."""

    if slot.kind is not EntityKind.BEER or slot.known_record_id is not None:
        return False
    return any(
        other.bottle_index == slot.bottle_index
        and other.kind is EntityKind.BREWERY
        and other.is_pending
        for other in session.entities
    )
