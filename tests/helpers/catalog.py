"""Reusable fakes and builders for matching and disambiguation tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from brewmatch.domain.model import (
    AuxiliaryFields,
    BeerRecord,
    BreweryRecord,
    EntityKind,
    ExtractedEntity,
)
from brewmatch.domain.ports import CatalogRepositories, PersistedEntity, ResolutionAction

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from brewmatch.domain.model import CatalogRecord
    from brewmatch.domain.ports import ResolvedBatch


def make_brewery(
    name: str,
    *,
    bottle_index: int = 0,
    website: str | None = None,
    email: str | None = None,
    address: str | None = None,
) -> ExtractedEntity:
    return ExtractedEntity(
        kind=EntityKind.BREWERY,
        raw_label=name,
        bottle_index=bottle_index,
        auxiliary_fields=AuxiliaryFields(website=website, email=email, address=address),
    )


def make_beer(
    name: str,
    *,
    bottle_index: int = 0,
    beer_type: str | None = None,
    abv: float | None = None,
    brewery_label: str | None = None,
) -> ExtractedEntity:
    return ExtractedEntity(
        kind=EntityKind.BEER,
        raw_label=name,
        bottle_index=bottle_index,
        auxiliary_fields=AuxiliaryFields(beer_type=beer_type, abv=abv),
        brewery_label=brewery_label,
    )


def brewery_records(*names: str) -> list[BreweryRecord]:
    """Catalog breweries with ids ``b1``, ``b2``, ... in argument order."""

    return [BreweryRecord(id=f"b{index}", name=name) for index, name in enumerate(names, 1)]


class FakeCatalog:
    """In-memory catalog repository recording every committed batch."""

    def __init__(self, records: Iterable[CatalogRecord] = ()) -> None:
        self.records: list[CatalogRecord] = list(records)
        self.batches: list[ResolvedBatch] = []
        self.list_calls: list[EntityKind] = []
        self.fail_with: Exception | None = None
        self._next_id = 0

    def list_candidates(
        self, kind: EntityKind, name_hint: str | None = None
    ) -> list[CatalogRecord]:
        self.list_calls.append(kind)
        return [record for record in self.records if record.kind is kind]

    def add(self, record: CatalogRecord) -> None:
        self.records.append(record)

    def commit_resolved_entities(self, batch: ResolvedBatch) -> list[PersistedEntity]:
        if self.fail_with is not None:
            raise self.fail_with
        self.batches.append(batch)
        persisted: list[PersistedEntity] = []
        for entity in batch.entities:
            if entity.action is ResolutionAction.LINK:
                assert entity.record_id is not None
                record_id = entity.record_id
            else:
                self._next_id += 1
                record_id = f"new-{self._next_id}"
                self.records.append(_record_from_fields(entity.kind, record_id, entity.fields))
            persisted.append(
                PersistedEntity(
                    bottle_index=entity.bottle_index,
                    kind=entity.kind,
                    record_id=record_id,
                    created=entity.action is ResolutionAction.CREATE,
                )
            )
        return persisted


def _record_from_fields(kind: EntityKind, record_id: str, fields: dict[str, str]) -> CatalogRecord:
    if kind is EntityKind.BREWERY:
        return BreweryRecord(id=record_id, name=fields["name"], website=fields.get("website"))
    return BeerRecord(
        id=record_id,
        name=fields["name"],
        brewery_id=fields.get("brewery_id"),
        beer_type=fields.get("beer_type"),
    )


class FakeUnitOfWork:
    """Unit of work over a shared ``FakeCatalog``; counts commits and rollbacks."""

    def __init__(self, catalog: FakeCatalog) -> None:
        self._repositories = CatalogRepositories(catalog=catalog)
        self.commits = 0
        self.rollbacks = 0

    @property
    def repositories(self) -> CatalogRepositories:
        return self._repositories

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
