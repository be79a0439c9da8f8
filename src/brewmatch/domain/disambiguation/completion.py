"""Validation of manually completed entity fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from brewmatch.domain.model import BeerRecord, BreweryRecord, EntityKind, parse_abv

if TYPE_CHECKING:
    from collections.abc import Mapping

    from brewmatch.domain.model import CatalogRecord, ExtractedEntity

BREWERY_FIELDS: Final[tuple[str, ...]] = ("name", "website", "email", "address")
BEER_FIELDS: Final[tuple[str, ...]] = ("name", "beer_type", "abv")

_REQUIRED: Final[dict[EntityKind, tuple[str, ...]]] = {
    EntityKind.BREWERY: ("name",),
    EntityKind.BEER: ("name",),
}
_RECOMMENDED: Final[dict[EntityKind, tuple[str, ...]]] = {
    EntityKind.BREWERY: ("website", "address"),
    EntityKind.BEER: ("beer_type", "abv"),
}
_MIN_BREWERY_NAME_LENGTH = 2


@dataclass(frozen=True, slots=True, kw_only=True)
class CompletionResult:
    fields: dict[str, str]
    missing_required: tuple[str, ...] = ()
    missing_recommended: tuple[str, ...] = ()
    issues: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.missing_required and not self.issues


def allowed_fields(kind: EntityKind) -> tuple[str, ...]:
    return BREWERY_FIELDS if kind is EntityKind.BREWERY else BEER_FIELDS


def merge_completion(
    entity: ExtractedEntity,
    user_fields: Mapping[str, object],
    *,
    record: CatalogRecord | None = None,
) -> dict[str, str]:
    """Overlay trimmed, non-blank user values on the known values of an entity."""

    merged = _base_fields(entity, record)
    for key in allowed_fields(entity.kind):
        value = user_fields.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            merged[key] = text
    return merged


def validate_completion(
    entity: ExtractedEntity,
    user_fields: Mapping[str, object],
    *,
    record: CatalogRecord | None = None,
) -> CompletionResult:
    merged = merge_completion(entity, user_fields, record=record)
    missing_required = tuple(key for key in _REQUIRED[entity.kind] if not merged.get(key))
    missing_recommended = tuple(key for key in _RECOMMENDED[entity.kind] if not merged.get(key))

    issues: list[str] = []
    name = merged.get("name", "")
    if entity.kind is EntityKind.BREWERY and name and len(name) < _MIN_BREWERY_NAME_LENGTH:
        issues.append(f"brewery name must have at least {_MIN_BREWERY_NAME_LENGTH} characters")
    abv = merged.get("abv")
    if abv is not None and parse_abv(abv) is None:
        issues.append(f"abv is not a number: {abv!r}")

    return CompletionResult(
        fields=merged,
        missing_required=missing_required,
        missing_recommended=missing_recommended,
        issues=tuple(issues),
    )


def _base_fields(entity: ExtractedEntity, record: CatalogRecord | None) -> dict[str, str]:
    hints = entity.auxiliary_fields
    if isinstance(record, BreweryRecord):
        values: dict[str, object] = {
            "name": record.name,
            "website": record.website or hints.website,
            "email": record.email or hints.email,
            "address": record.address or hints.address,
        }
    elif isinstance(record, BeerRecord):
        values = {
            "name": record.name,
            "beer_type": record.beer_type or hints.beer_type,
            "abv": record.abv if record.abv is not None else hints.abv,
        }
    elif entity.kind is EntityKind.BREWERY:
        values = {
            "name": entity.raw_label,
            "website": hints.website,
            "email": hints.email,
            "address": hints.address,
        }
    else:
        values = {
            "name": entity.raw_label,
            "beer_type": hints.beer_type,
            "abv": hints.abv,
        }
    return {key: str(value).strip() for key, value in values.items() if _present(value)}


def _present(value: object) -> bool:
    if value is None:
        return False
    return bool(str(value).strip())
