from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from brewmatch.adapters.sqlalchemy import (
    SqlAlchemyCatalogRepository,
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    beer_table,
    brewery_table,
    shutdown,
)
from brewmatch.domain.disambiguation import UpstreamUnavailable
from brewmatch.domain.model import BeerRecord, BreweryRecord, EntityKind
from brewmatch.domain.ports import (
    CatalogRepository,
    ResolutionAction,
    ResolvedBatch,
    ResolvedEntity,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session


def _seed(session: Session) -> SqlAlchemyCatalogRepository:
    repository = SqlAlchemyCatalogRepository(session)
    repository.add(BreweryRecord(id="viana", name="Birrificio Viana S.r.l."))
    repository.add(BreweryRecord(id="peroni", name="Peroni", website="peroni.it"))
    repository.add(BeerRecord(id="viana-ipa", name="Viana IPA", brewery_id="viana", abv=6.5))
    session.flush()
    return repository


def _batch(*entities: ResolvedEntity) -> ResolvedBatch:
    return ResolvedBatch(session_id="s-1", entities=entities)


def test_repository_satisfies_catalog_port(sqlite_session: Session) -> None:
    assert isinstance(SqlAlchemyCatalogRepository(sqlite_session), CatalogRepository)


def test_list_candidates_returns_records_of_one_kind(sqlite_session: Session) -> None:
    repository = _seed(sqlite_session)

    breweries = repository.list_candidates(EntityKind.BREWERY)
    beers = repository.list_candidates(EntityKind.BEER, name_hint="Viana")

    assert [record.name for record in breweries] == ["Birrificio Viana S.r.l.", "Peroni"]
    assert breweries[1] == BreweryRecord(id="peroni", name="Peroni", website="peroni.it")
    assert beers == [BeerRecord(id="viana-ipa", name="Viana IPA", brewery_id="viana", abv=6.5)]


def test_commit_links_existing_and_creates_new_records(sqlite_session: Session) -> None:
    repository = _seed(sqlite_session)
    batch = _batch(
        ResolvedEntity(
            bottle_index=0,
            kind=EntityKind.BREWERY,
            action=ResolutionAction.LINK,
            record_id="viana",
            fields={"website": "birrificioviana.it"},
        ),
        ResolvedEntity(
            bottle_index=1,
            kind=EntityKind.BREWERY,
            action=ResolutionAction.CREATE,
            fields={"name": "Zzyzx Brewing", "address": "Zzyzx Road"},
        ),
        ResolvedEntity(
            bottle_index=1,
            kind=EntityKind.BEER,
            action=ResolutionAction.CREATE,
            fields={"name": "Zzyzx Sour", "abv": "4,2%"},
        ),
    )

    persisted = repository.commit_resolved_entities(batch)

    assert [(item.kind, item.created) for item in persisted] == [
        (EntityKind.BREWERY, False),
        (EntityKind.BREWERY, True),
        (EntityKind.BEER, True),
    ]
    viana = repository.get(EntityKind.BREWERY, "viana")
    assert isinstance(viana, BreweryRecord)
    assert viana.website == "birrificioviana.it"

    created_brewery = persisted[1].record_id
    beer = repository.get(EntityKind.BEER, persisted[2].record_id)
    assert isinstance(beer, BeerRecord)
    assert beer.brewery_id == created_brewery
    assert beer.abv == pytest.approx(4.2)
    row = sqlite_session.execute(
        select(brewery_table.c.created_by_session).where(brewery_table.c.id == created_brewery)
    ).one()
    assert row.created_by_session == "s-1"


def test_link_never_overwrites_existing_values(sqlite_session: Session) -> None:
    repository = _seed(sqlite_session)

    repository.commit_resolved_entities(
        _batch(
            ResolvedEntity(
                bottle_index=0,
                kind=EntityKind.BREWERY,
                action=ResolutionAction.LINK,
                record_id="peroni",
                fields={"website": "example.com", "email": "info@peroni.it"},
            )
        )
    )

    peroni = repository.get(EntityKind.BREWERY, "peroni")
    assert isinstance(peroni, BreweryRecord)
    assert peroni.website == "peroni.it"
    assert peroni.email == "info@peroni.it"


def test_duplicate_creations_in_one_batch_share_a_record(sqlite_session: Session) -> None:
    repository = _seed(sqlite_session)
    batch = _batch(
        *(
            ResolvedEntity(
                bottle_index=index,
                kind=EntityKind.BREWERY,
                action=ResolutionAction.CREATE,
                fields={"name": name},
            )
            for index, name in enumerate(["Zzyzx Brewing", "ZZYZX brewing."])
        )
    )

    first, second = repository.commit_resolved_entities(batch)

    assert first.record_id == second.record_id
    assert first.created
    assert not second.created
    count = sqlite_session.execute(
        select(brewery_table.c.id).where(brewery_table.c.name == "Zzyzx Brewing")
    ).all()
    assert len(count) == 1


def test_linking_a_missing_record_is_upstream_failure(sqlite_session: Session) -> None:
    repository = _seed(sqlite_session)

    with pytest.raises(UpstreamUnavailable) as excinfo:
        repository.commit_resolved_entities(
            _batch(
                ResolvedEntity(
                    bottle_index=0,
                    kind=EntityKind.BEER,
                    action=ResolutionAction.LINK,
                    record_id="gone",
                )
            )
        )

    assert excinfo.value.service == "catalog"
    assert excinfo.value.session_id == "s-1"


def test_unit_of_work_commits_and_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.catalog.add(BreweryRecord(id="viana", name="Birrificio Viana"))
        uow.commit()

    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.catalog.add(BreweryRecord(id="peroni", name="Peroni"))
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        names = [
            record.name for record in uow.repositories.catalog.list_candidates(EntityKind.BREWERY)
        ]
        beers = uow.session.execute(select(beer_table)).all()

    assert names == ["Birrificio Viana"]
    assert beers == []


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyCatalogUnitOfWork()
