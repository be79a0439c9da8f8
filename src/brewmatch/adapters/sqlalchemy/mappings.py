"""SQLAlchemy table metadata for the brewery/beer catalog."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Float,
    ForeignKey,
    Index,
    String,
    Table,
    TypeDecorator,
    orm,
)

from brewmatch.domain.model import BeerRecord, BreweryRecord

if TYPE_CHECKING:
    from sqlalchemy import Row
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def new_record_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

brewery_table = Table(
    "brewery",
    mapper_registry.metadata,
    Column("id", String(32), primary_key=True, default=new_record_id),
    Column("name", String, nullable=False),
    Column("website", String, nullable=True),
    Column("email", String, nullable=True),
    Column("address", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("created_by_session", String, nullable=True),
    Index("ix_brewery_name", "name"),
)

beer_table = Table(
    "beer",
    mapper_registry.metadata,
    Column("id", String(32), primary_key=True, default=new_record_id),
    Column("name", String, nullable=False),
    Column(
        "brewery_id",
        String(32),
        ForeignKey("brewery.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("beer_type", String, nullable=True),
    Column("abv", Float, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("created_by_session", String, nullable=True),
    Index("ix_beer_name", "name"),
    Index("ix_beer_brewery_id", "brewery_id"),
)


def brewery_from_row(row: Row[tuple[object, ...]]) -> BreweryRecord:
    mapping = row._mapping  # noqa: SLF001
    return BreweryRecord(
        id=str(mapping["id"]),
        name=str(mapping["name"]),
        website=mapping["website"],
        email=mapping["email"],
        address=mapping["address"],
    )


def beer_from_row(row: Row[tuple[object, ...]]) -> BeerRecord:
    mapping = row._mapping  # noqa: SLF001
    return BeerRecord(
        id=str(mapping["id"]),
        name=str(mapping["name"]),
        brewery_id=mapping["brewery_id"],
        beer_type=mapping["beer_type"],
        abv=mapping["abv"],
    )


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the catalog metadata."""

    log.info("Ensuring catalog schema (brewery, beer)")
    mapper_registry.metadata.create_all(engine)
