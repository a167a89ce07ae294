"""Ports for persisting project documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from uuid import UUID

    from fset.domain.model import Project
    from fset.domain.reconciliation.policy import UpsertPolicy

type Record = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class RowRef:
    """Identity and anchor of a row returned by a batch write."""

    id: UUID
    anchor: str


@runtime_checkable
class ProjectRepository(Protocol):
    """Persistence contract for projects. Lookups load files and fmodels eagerly."""

    def add(self, project: Project) -> None: ...

    def get_by_key(self, key: str) -> Project | None: ...

    def get_by_anchor(self, anchor: str) -> Project | None: ...

    def update(self, project: Project, values: Mapping[str, object]) -> Project: ...


@runtime_checkable
class FileRepository(Protocol):
    def insert_all(
        self,
        records: Sequence[Record],
        *,
        policy: UpsertPolicy,
        returning: bool = False,
    ) -> tuple[RowRef, ...]: ...

    def delete_by_anchors(self, anchors: Collection[str], *, project_id: UUID) -> int: ...


@runtime_checkable
class FmodelRepository(Protocol):
    def insert_all(
        self,
        records: Sequence[Record],
        *,
        policy: UpsertPolicy,
        returning: bool = False,
    ) -> tuple[RowRef, ...]: ...

    def delete_by_anchors(self, anchors: Collection[str]) -> int: ...
