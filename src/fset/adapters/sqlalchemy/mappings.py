"""SQLAlchemy mapping metadata for the fset domain model."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    event,
    orm,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import configure_mappers, relationship

from fset.domain.model import File, Fmodel, Project
from fset.domain.reconciliation.policy import EntityKind

if TYPE_CHECKING:
    from sqlalchemy.pool import ConnectionPoolEntry

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


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


@event.listens_for(Engine, "connect")
def _enforce_sqlite_foreign_keys(
    dbapi_connection: object, connection_record: ConnectionPoolEntry
) -> None:
    """SQLite ignores foreign keys unless each connection opts in."""

    _ = connection_record
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

project_table = Table(
    "project",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("anchor", String(36), nullable=False, unique=True),
    Column("key", String, nullable=False, unique=True),
    Column("order", Integer, nullable=False, default=0),
    Column("description", Text, nullable=True),
    Column("inserted_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

file_table = Table(
    "file",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("anchor", String, nullable=False, unique=True),
    Column("key", String, nullable=False),
    Column("order", Integer, nullable=False, default=0),
    Column(
        "project_id",
        UUIDColumnType,
        ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("inserted_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("key", "project_id"),
)

fmodel_table = Table(
    "fmodel",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("anchor", String, nullable=False, unique=True),
    Column("type", String, nullable=True),
    Column("key", String, nullable=True),
    Column("is_entry", Boolean, nullable=False, default=False),
    Column("sch", JSON, nullable=False, default=dict),
    Column(
        "file_id",
        UUIDColumnType,
        ForeignKey("file.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("inserted_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

TABLE_BY_KIND: Final[dict[EntityKind, Table]] = {
    EntityKind.PROJECT: project_table,
    EntityKind.FILE: file_table,
    EntityKind.FMODEL: fmodel_table,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Fmodel,
        fmodel_table,
    )

    mapper_registry.map_imperatively(
        File,
        file_table,
        properties={
            "fmodels": relationship(
                Fmodel,
                cascade="all, delete-orphan",
                order_by=[fmodel_table.c.inserted_at, fmodel_table.c.anchor],
            ),
        },
    )

    mapper_registry.map_imperatively(
        Project,
        project_table,
        properties={
            "files": relationship(
                File,
                cascade="all, delete-orphan",
                order_by=[file_table.c.order, file_table.c.key],
            ),
        },
    )

    configure_mappers()
    return mapper_registry
