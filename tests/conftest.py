from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from brewmatch.adapters.sqlalchemy import create_all_tables
from brewmatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    shutdown,
    startup,
)
from brewmatch.domain.disambiguation import ConfirmationWorkflow, SessionRegistry
from brewmatch.domain.model import BeerRecord, BreweryRecord
from tests.helpers.catalog import FakeCatalog, FakeUnitOfWork

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyCatalogUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyCatalogUnitOfWork:
        return SqlAlchemyCatalogUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(
        [
            BreweryRecord(id="viana", name="Birrificio Viana S.r.l.", website="birrificioviana.it"),
            BreweryRecord(id="heineken", name="Heineken"),
            BreweryRecord(id="peroni", name="Peroni"),
            BeerRecord(id="viana-ipa", name="Viana IPA", brewery_id="viana", beer_type="IPA"),
            BeerRecord(id="peroni-nastro", name="Nastro Azzurro", brewery_id="peroni"),
        ]
    )


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def workflow(registry: SessionRegistry, catalog: FakeCatalog) -> ConfirmationWorkflow:
    return ConfirmationWorkflow(registry, lambda: FakeUnitOfWork(catalog))
