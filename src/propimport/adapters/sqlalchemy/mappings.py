"""SQLAlchemy mapping metadata for property records."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Float,
    Index,
    String,
    Table,
    TypeDecorator,
    orm,
)

from propimport.domain.model import PropertyRecord

if TYPE_CHECKING:
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


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

property_table = Table(
    "properties",
    mapper_registry.metadata,
    Column("id", String(36), primary_key=True),
    Column("adresse", String(512)),
    Column("ville", String(255)),
    Column("code_postal", String(16)),
    Column("municipalite", String(255)),
    Column("prix_vente", Float),
    Column("normalized_address", String(512)),
    Column("attributes", JSON, nullable=False, default=dict),
    Column("field_sources", JSON, nullable=False, default=dict),
    Column("source", String(64)),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

Index("ix_properties_normalized_address", property_table.c.normalized_address)


@cache
def start_mappers() -> orm.registry:
    """Map :class:`PropertyRecord` onto the ``properties`` table (once per process)."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(PropertyRecord, property_table)
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
