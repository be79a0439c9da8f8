"""Domain model for catalog matching."""

from __future__ import annotations

from .catalog import (
    AuxiliaryFields,
    BeerRecord,
    BreweryRecord,
    CatalogRecord,
    ExtractedEntity,
    parse_abv,
)
from .enums import (
    AmbiguityReason,
    CleanupReason,
    EntityKind,
    ResolutionStatus,
    SessionStatus,
    UserResolutionKind,
)

__all__ = [
    "AmbiguityReason",
    "AuxiliaryFields",
    "BeerRecord",
    "BreweryRecord",
    "CatalogRecord",
    "CleanupReason",
    "EntityKind",
    "ExtractedEntity",
    "ResolutionStatus",
    "SessionStatus",
    "UserResolutionKind",
    "parse_abv",
]
