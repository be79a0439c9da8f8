"""Catalog records and extracted entities.

Catalog records are read-only snapshots of what the persistence layer already
stores. Extracted entities are what the label-analysis service produced for a
single photographed bottle; their fields are hints and are never assumed to be
correct.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import TYPE_CHECKING

from .enums import EntityKind

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True, kw_only=True)
class BreweryRecord:
    id: str
    name: str
    website: str | None = None
    email: str | None = None
    address: str | None = None

    @property
    def kind(self) -> EntityKind:
        return EntityKind.BREWERY


@dataclass(frozen=True, slots=True, kw_only=True)
class BeerRecord:
    id: str
    name: str
    brewery_id: str | None = None
    beer_type: str | None = None
    abv: float | None = None

    @property
    def kind(self) -> EntityKind:
        return EntityKind.BEER


type CatalogRecord = BreweryRecord | BeerRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class AuxiliaryFields:
    """Optional structured hints extracted next to the name on a label."""

    website: str | None = None
    address: str | None = None
    email: str | None = None
    beer_type: str | None = None
    abv: float | None = None

    def as_dict(self) -> dict[str, str | float]:
        values: dict[str, str | float] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                values[item.name] = value
        return values

    def merged(self, overrides: Mapping[str, object]) -> AuxiliaryFields:
        """Return a copy with non-blank ``overrides`` applied on top."""

        known = {item.name for item in fields(self)}
        changes: dict[str, object] = {}
        for key, value in overrides.items():
            if key not in known:
                continue
            cleaned = value.strip() if isinstance(value, str) else value
            if cleaned is None or cleaned == "":
                continue
            if key == "abv":
                cleaned = parse_abv(cleaned)
                if cleaned is None:
                    continue
            changes[key] = cleaned
        return replace(self, **changes)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractedEntity:
    """One brewery or beer read from a bottle label by the analysis service."""

    kind: EntityKind
    raw_label: str
    bottle_index: int
    auxiliary_fields: AuxiliaryFields = field(default_factory=AuxiliaryFields)
    brewery_label: str | None = None


def parse_abv(value: object) -> float | None:
    """Parse an ABV hint such as ``5``, ``"5,5%"`` or ``"6.2 % vol"``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if not isinstance(value, str):
        return None
    cleaned = value.lower().replace("vol", "").replace("%", "").replace(",", ".").strip()
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None
