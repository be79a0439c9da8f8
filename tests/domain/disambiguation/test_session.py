from __future__ import annotations

from datetime import UTC, datetime

import pytest

from brewmatch.domain.disambiguation import (
    Confirmed,
    DisambiguationSession,
    IncompleteSession,
    InvalidTransition,
    ManuallyCompleted,
    RejectedCreateNew,
)
from brewmatch.domain.matching import resolve_entity
from brewmatch.domain.model import (
    BreweryRecord,
    EntityKind,
    SessionStatus,
    UserResolutionKind,
)
from tests.helpers.catalog import brewery_records, make_beer, make_brewery

CATALOG = brewery_records("Birrificio Viana S.r.l.", "Heineken", "Peroni")
VIANA = CATALOG[0]
HEINEKEN = CATALOG[1]


def _open(*labels: str) -> DisambiguationSession:
    resolved = [
        (entity, resolve_entity(entity, CATALOG))
        for entity in (
            make_brewery(label, bottle_index=index) for index, label in enumerate(labels)
        )
    ]
    return DisambiguationSession.open(
        resolved, session_id="s-1", now=datetime(2025, 1, 1, tzinfo=UTC)
    )


def test_open_confirms_auto_matches_and_leaves_the_rest_pending() -> None:
    session = _open("Heineken", "Birrificio Indipendente Viana", "Zzyzx Brewing Experimental")

    auto, confirm, unknown = session.entities
    assert isinstance(auto.resolution, Confirmed)
    assert auto.resolution.automatic
    assert confirm.resolution.kind is UserResolutionKind.PENDING
    assert unknown.resolution.kind is UserResolutionKind.PENDING
    assert session.status is SessionStatus.ACTIVE
    assert session.version == 0

    progress = session.progress()
    assert progress.total == 3
    assert progress.resolved == 1
    assert progress.outstanding == 2
    assert progress.awaiting_human == 1


def test_open_rejects_duplicate_entities_for_one_bottle() -> None:
    entity = make_brewery("Heineken")
    decision = resolve_entity(entity, CATALOG)

    with pytest.raises(ValueError, match="Duplicate"):
        DisambiguationSession.open([(entity, decision), (entity, decision)])


def test_open_generates_distinct_session_ids() -> None:
    first = DisambiguationSession.open([])
    second = DisambiguationSession.open([])

    assert first.session_id != second.session_id
    assert len(first.session_id) >= 32


def test_apply_choice_is_idempotent() -> None:
    session = _open("Birrificio Indipendente Viana")

    assert session.apply_choice(0, Confirmed(record=VIANA)) is True
    version = session.version
    assert session.apply_choice(0, Confirmed(record=VIANA)) is False

    assert session.version == version
    assert session.slot(0).resolution == Confirmed(record=VIANA)


def test_apply_choice_rejects_conflicting_second_answer() -> None:
    session = _open("Birrificio Indipendente Viana")
    session.apply_choice(0, Confirmed(record=VIANA))

    with pytest.raises(InvalidTransition):
        session.apply_choice(0, RejectedCreateNew())

    assert session.slot(0).resolution == Confirmed(record=VIANA)


def test_apply_choice_rejects_records_that_were_not_offered() -> None:
    session = _open("Birrificio Indipendente Viana")

    with pytest.raises(InvalidTransition, match="not offered"):
        session.apply_choice(0, Confirmed(record=HEINEKEN))

    assert session.slot(0).is_pending
    assert session.version == 0


def test_auto_match_can_be_overridden_while_active() -> None:
    session = _open("Heineken")

    assert session.apply_choice(0, RejectedCreateNew()) is True

    assert session.slot(0).resolution.kind is UserResolutionKind.REJECTED_CREATE_NEW
    assert not session.slot(0).is_automatic


def test_confirming_an_auto_match_marks_it_reviewed() -> None:
    session = _open("Heineken")

    assert session.apply_choice(0, Confirmed(record=HEINEKEN)) is True
    assert session.apply_choice(0, Confirmed(record=HEINEKEN)) is False

    assert not session.slot(0).is_automatic


def test_unknown_bottle_index_is_invalid() -> None:
    session = _open("Heineken")

    with pytest.raises(InvalidTransition):
        session.apply_choice(7, RejectedCreateNew())


def test_bottle_with_brewery_and_beer_requires_kind() -> None:
    brewery = make_brewery("Zzyzx Brewing Experimental")
    beer = make_beer("Zzyzx Sour")
    session = DisambiguationSession.open(
        [(brewery, resolve_entity(brewery, CATALOG)), (beer, resolve_entity(beer, []))]
    )

    with pytest.raises(InvalidTransition, match="specify the kind"):
        session.apply_choice(0, RejectedCreateNew())

    assert session.apply_choice(0, RejectedCreateNew(), kind=EntityKind.BEER)
    assert session.slot(0, EntityKind.BEER).resolution == RejectedCreateNew()
    assert session.slot(0, EntityKind.BREWERY).is_pending


def test_begin_commit_requires_every_entity_resolved() -> None:
    session = _open("Heineken", "Zzyzx Brewing Experimental")

    with pytest.raises(IncompleteSession) as excinfo:
        session.begin_commit()

    assert excinfo.value.outstanding == (1,)
    assert session.status is SessionStatus.ACTIVE


def test_commit_lifecycle() -> None:
    session = _open("Heineken", "Zzyzx Brewing Experimental")
    session.apply_choice(1, RejectedCreateNew())

    session.begin_commit()
    assert session.status is SessionStatus.COMMITTING
    with pytest.raises(InvalidTransition):
        session.apply_choice(0, RejectedCreateNew())

    session.cancel_commit()
    assert session.status is SessionStatus.ACTIVE

    session.begin_commit()
    session.mark_committed([(slot, f"id-{slot.bottle_index}") for slot in session.entities])
    session.finish_commit()

    assert session.status is SessionStatus.COMMITTED
    assert all(slot.committed for slot in session.entities)
    assert session.slot(1).known_record_id == "id-1"
    with pytest.raises(InvalidTransition):
        session.abandon()


def test_committed_entities_are_frozen() -> None:
    session = _open("Birrificio Indipendente Viana", "Zzyzx Brewing Experimental")
    session.apply_choice(0, Confirmed(record=VIANA))
    session.mark_committed([(session.slot(0), VIANA.id)])

    assert session.ready_to_commit() == []
    with pytest.raises(InvalidTransition):
        session.apply_choice(0, RejectedCreateNew())


def test_abandoned_session_accepts_no_choices() -> None:
    session = _open("Birrificio Indipendente Viana")
    session.abandon()

    with pytest.raises(InvalidTransition):
        session.apply_choice(0, Confirmed(record=VIANA))
    assert not session.is_live


def test_manual_completion_over_offered_record_is_recorded() -> None:
    session = _open("Birrificio Indipendente Viana")
    choice = ManuallyCompleted(fields={"name": VIANA.name, "address": "Via Roma 1"}, record=VIANA)

    assert session.apply_choice(0, choice)

    slot = session.slot(0)
    assert slot.known_record_id == VIANA.id
    assert slot.resolution.kind is UserResolutionKind.MANUALLY_COMPLETED


def test_offers_compares_identity_not_name() -> None:
    session = _open("Birrificio Indipendente Viana")
    impostor = BreweryRecord(id="other", name=VIANA.name)

    assert session.slot(0).offers(VIANA)
    assert not session.slot(0).offers(impostor)
