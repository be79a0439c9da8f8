"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from brewmatch.adapters.sqlalchemy.mappings import (
    beer_from_row,
    beer_table,
    brewery_from_row,
    brewery_table,
    new_record_id,
)
from brewmatch.domain.disambiguation import UpstreamUnavailable
from brewmatch.domain.matching import normalize
from brewmatch.domain.model import BeerRecord, BreweryRecord, EntityKind, parse_abv
from brewmatch.domain.ports import PersistedEntity, ResolutionAction

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from brewmatch.domain.model import CatalogRecord
    from brewmatch.domain.ports import ResolvedBatch, ResolvedEntity

log = logging.getLogger(__name__)

_BREWERY_COLUMNS = ("website", "email", "address")
_BEER_COLUMNS = ("beer_type", "abv")


class SqlAlchemyCatalogRepository:
    """Catalog reader/writer over the ``brewery`` and ``beer`` tables.

    ``list_candidates`` returns every record of the requested kind; fuzzy
    matching cannot be narrowed safely in SQL, so ``name_hint`` is only used
    for the log line.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_candidates(
        self, kind: EntityKind, name_hint: str | None = None
    ) -> list[CatalogRecord]:
        table = _table_for(kind)
        rows = self.session.execute(select(table).order_by(table.c.name, table.c.id)).all()
        convert = brewery_from_row if kind is EntityKind.BREWERY else beer_from_row
        records: list[CatalogRecord] = [convert(row) for row in rows]
        log.debug("Loaded %d %s records (hint=%r)", len(records), kind, name_hint)
        return records

    def get(self, kind: EntityKind, record_id: str) -> CatalogRecord | None:
        table = _table_for(kind)
        row = self.session.execute(select(table).where(table.c.id == record_id)).one_or_none()
        if row is None:
            return None
        return brewery_from_row(row) if kind is EntityKind.BREWERY else beer_from_row(row)

    def add(self, record: CatalogRecord) -> None:
        if isinstance(record, BreweryRecord):
            self.session.execute(
                brewery_table.insert().values(
                    id=record.id,
                    name=record.name,
                    website=record.website,
                    email=record.email,
                    address=record.address,
                )
            )
        else:
            self.session.execute(
                beer_table.insert().values(
                    id=record.id,
                    name=record.name,
                    brewery_id=record.brewery_id,
                    beer_type=record.beer_type,
                    abv=record.abv,
                )
            )

    def commit_resolved_entities(self, batch: ResolvedBatch) -> list[PersistedEntity]:
        """Link or create every entity of ``batch`` inside the current session.

        Breweries created in the batch are reused by later entities with the
        same normalized name, and beers created for a bottle are attached to
        that bottle's brewery.
        """

        writer = _BatchWriter(self, batch.session_id)
        try:
            persisted = [writer.apply(entity) for entity in batch.entities]
            self.session.flush()
        except SQLAlchemyError as exc:
            raise UpstreamUnavailable(
                f"Catalog write failed: {exc}", session_id=batch.session_id, service="catalog"
            ) from exc
        log.info(
            "Session %s: linked %d, created %d catalog records",
            batch.session_id,
            sum(1 for item in persisted if not item.created),
            sum(1 for item in persisted if item.created),
        )
        return persisted


class _BatchWriter:
    def __init__(self, repository: SqlAlchemyCatalogRepository, session_id: str) -> None:
        self._repository = repository
        self._session_id = session_id
        self._brewery_by_bottle: dict[int, str] = {}
        self._created: dict[tuple[EntityKind, str, str | None], str] = {}

    def apply(self, entity: ResolvedEntity) -> PersistedEntity:
        if entity.action is ResolutionAction.LINK:
            record_id = self._link(entity)
            created = False
        else:
            record_id, created = self._create(entity)
        if entity.kind is EntityKind.BREWERY:
            self._brewery_by_bottle[entity.bottle_index] = record_id
        return PersistedEntity(
            bottle_index=entity.bottle_index,
            kind=entity.kind,
            record_id=record_id,
            created=created,
        )

    def _link(self, entity: ResolvedEntity) -> str:
        if entity.record_id is None:
            raise ValueError("Linking requires a record id")
        existing = self._repository.get(entity.kind, entity.record_id)
        if existing is None:
            raise UpstreamUnavailable(
                f"{entity.kind} {entity.record_id} no longer exists in the catalog",
                session_id=self._session_id,
                service="catalog",
            )
        gaps = _missing_values(existing, entity.fields)
        if gaps:
            table = _table_for(entity.kind)
            self._repository.session.execute(
                table.update().where(table.c.id == existing.id).values(**gaps)
            )
            log.debug("Filled %s on %s %s", ", ".join(sorted(gaps)), entity.kind, existing.id)
        return existing.id

    def _create(self, entity: ResolvedEntity) -> tuple[str, bool]:
        fields = entity.fields
        name = fields["name"].strip()
        brewery_id: str | None = None
        if entity.kind is EntityKind.BEER:
            brewery_id = fields.get("brewery_id") or self._brewery_by_bottle.get(entity.bottle_index)

        key = (entity.kind, normalize(name), brewery_id)
        if key in self._created:
            return self._created[key], False

        record_id = new_record_id()
        if entity.kind is EntityKind.BREWERY:
            statement = brewery_table.insert().values(
                id=record_id,
                name=name,
                website=fields.get("website"),
                email=fields.get("email"),
                address=fields.get("address"),
                created_by_session=self._session_id,
            )
        else:
            statement = beer_table.insert().values(
                id=record_id,
                name=name,
                brewery_id=brewery_id,
                beer_type=fields.get("beer_type"),
                abv=parse_abv(fields.get("abv")),
                created_by_session=self._session_id,
            )
        self._repository.session.execute(statement)
        self._created[key] = record_id
        return record_id, True


def _table_for(kind: EntityKind) -> Table:
    return brewery_table if kind is EntityKind.BREWERY else beer_table


def _missing_values(record: CatalogRecord, fields: dict[str, str]) -> dict[str, object]:
    columns = _BREWERY_COLUMNS if isinstance(record, BreweryRecord) else _BEER_COLUMNS
    gaps: dict[str, object] = {}
    for column in columns:
        value = fields.get(column)
        if not value or getattr(record, column) is not None:
            continue
        if isinstance(record, BeerRecord) and column == "abv":
            parsed = parse_abv(value)
            if parsed is None:
                continue
            gaps[column] = parsed
        else:
            gaps[column] = value
    return gaps
