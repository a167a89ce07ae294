"""Domain ports (persistence and unit of work)."""

from __future__ import annotations

from .persistence import FileRepository, FmodelRepository, ProjectRepository, Record, RowRef
from .unit_of_work import (
    DocumentRepositories,
    DocumentUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "DocumentRepositories",
    "DocumentUnitOfWork",
    "FileRepository",
    "FmodelRepository",
    "ProjectRepository",
    "Record",
    "RepositoryCollection",
    "RowRef",
    "UnitOfWork",
]
