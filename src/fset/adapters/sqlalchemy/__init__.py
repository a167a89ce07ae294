"""SQLAlchemy adapter package for fset."""

from __future__ import annotations

from .mappings import (
    TABLE_BY_KIND,
    file_table,
    fmodel_table,
    mapper_registry,
    project_table,
    start_mappers,
)
from .repositories import (
    SqlAlchemyFileRepository,
    SqlAlchemyFmodelRepository,
    SqlAlchemyProjectRepository,
    UnsupportedDialectError,
)
from .unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "TABLE_BY_KIND",
    "SqlAlchemyDocumentUnitOfWork",
    "SqlAlchemyFileRepository",
    "SqlAlchemyFmodelRepository",
    "SqlAlchemyProjectRepository",
    "StartupError",
    "UnsupportedDialectError",
    "file_table",
    "fmodel_table",
    "is_started",
    "mapper_registry",
    "project_table",
    "shutdown",
    "start_mappers",
    "startup",
]
