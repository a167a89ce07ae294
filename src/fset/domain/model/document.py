"""Project documents: a project owns files, a file owns fmodels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fset.domain.model.entity import Entity, new_anchor

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Fmodel(Entity):
    """One schema node. ``sch`` is stored as-is and never inspected."""

    anchor: str
    type: str | None = None
    key: str | None = None
    is_entry: bool = False
    sch: dict[str, Any] = field(default_factory=dict[str, Any])

    file_id: UUID | None = None

    inserted_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(eq=False, kw_only=True)
class File(Entity):
    anchor: str
    key: str
    order: int = 0

    project_id: UUID | None = None

    inserted_at: datetime | None = None
    updated_at: datetime | None = None

    fmodels: list[Fmodel] = field(default_factory=list["Fmodel"], repr=False)

    def find_fmodel(self, anchor: str) -> Fmodel | None:
        return next((fmodel for fmodel in self.fmodels if fmodel.anchor == anchor), None)


@dataclass(eq=False, kw_only=True)
class Project(Entity):
    """Aggregate root of a document. Never hard-deleted."""

    key: str
    anchor: str = field(default_factory=new_anchor)
    order: int = 0
    description: str | None = None

    inserted_at: datetime | None = None
    updated_at: datetime | None = None

    files: list[File] = field(default_factory=list["File"], repr=False)

    def find_file(self, anchor: str) -> File | None:
        return next((file for file in self.files if file.anchor == anchor), None)
