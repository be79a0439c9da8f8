"""Domain ports (interfaces) for external adapters."""

from __future__ import annotations

from .catalog import (
    CatalogReader,
    CatalogRepository,
    CatalogWriter,
    PersistedEntity,
    ResolutionAction,
    ResolvedBatch,
    ResolvedEntity,
)
from .extraction import ExtractionResult, LabelExtractor
from .unit_of_work import CatalogRepositories, CatalogUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "CatalogReader",
    "CatalogRepositories",
    "CatalogRepository",
    "CatalogUnitOfWork",
    "CatalogWriter",
    "ExtractionResult",
    "LabelExtractor",
    "PersistedEntity",
    "RepositoryCollection",
    "ResolutionAction",
    "ResolvedBatch",
    "ResolvedEntity",
    "UnitOfWork",
]
