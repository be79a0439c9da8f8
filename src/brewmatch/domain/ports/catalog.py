"""Ports for reading and writing the brewery/beer catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from brewmatch.domain.model import CatalogRecord, EntityKind


class ResolutionAction(StrEnum):
    LINK = "link"
    CREATE = "create"


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedEntity:
    """One resolved entity handed to the persistence layer.

    ``LINK`` references an existing ``record_id``; ``fields`` then only fills
    gaps in that record. ``CREATE`` inserts a new record from ``fields``.
    """

    bottle_index: int
    kind: EntityKind
    action: ResolutionAction
    record_id: str | None = None
    fields: dict[str, str] = field(default_factory=dict[str, str])

    def __post_init__(self) -> None:
        if self.action is ResolutionAction.LINK and not self.record_id:
            raise ValueError("Linking requires a record id")
        if self.action is ResolutionAction.CREATE and not self.fields.get("name"):
            raise ValueError("Creating a record requires a name")


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedBatch:
    session_id: str
    entities: tuple[ResolvedEntity, ...]

    def __len__(self) -> int:
        return len(self.entities)


@dataclass(frozen=True, slots=True, kw_only=True)
class PersistedEntity:
    bottle_index: int
    kind: EntityKind
    record_id: str
    created: bool


@runtime_checkable
class CatalogReader(Protocol):
    """Read-only access to catalog records of one kind."""

    def list_candidates(
        self, kind: EntityKind, name_hint: str | None = None
    ) -> Sequence[CatalogRecord]: ...


@runtime_checkable
class CatalogWriter(Protocol):
    """Applies resolved entities; callers commit through the unit of work."""

    def commit_resolved_entities(self, batch: ResolvedBatch) -> list[PersistedEntity]: ...


@runtime_checkable
class CatalogRepository(CatalogReader, CatalogWriter, Protocol):
    """Read and write access to the catalog within one unit of work."""

    def add(self, record: CatalogRecord) -> None: ...
