"""SQLAlchemy adapter package for brewmatch."""

from __future__ import annotations

from .mappings import beer_table, brewery_table, create_all_tables, mapper_registry
from .repositories import SqlAlchemyCatalogRepository
from .unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyCatalogUnitOfWork",
    "StartupError",
    "beer_table",
    "brewery_table",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
