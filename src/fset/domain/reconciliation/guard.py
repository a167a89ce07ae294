"""Referential integrity guard for fmodels about to be written.

Every fmodel names its parent file through a ``parentAnchor`` marker in its
payload. The guard strips that marker and swaps it for the file's identity. A
single unknown parent makes the whole batch unresolved; nothing is dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from .patches import FmodelPatch


class AnchoredRow(Protocol):
    @property
    def id(self) -> UUID: ...

    @property
    def anchor(self) -> str: ...


class ParentStatus(StrEnum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True, slots=True)
class ResolvedFmodel:
    """An fmodel patch without its parent marker, bound to a file identity."""

    patch: FmodelPatch
    file_id: UUID

    def record(self) -> dict[str, object]:
        return {**self.patch.values(), "file_id": self.file_id}


@dataclass(frozen=True, slots=True, kw_only=True)
class ParentsResolved:
    fmodels: tuple[ResolvedFmodel, ...] = ()
    status: Literal[ParentStatus.RESOLVED] = ParentStatus.RESOLVED


@dataclass(frozen=True, slots=True, kw_only=True)
class ParentUnresolved:
    fmodel: FmodelPatch
    parent_anchor: object
    status: Literal[ParentStatus.UNRESOLVED] = ParentStatus.UNRESOLVED


type ParentResolution = ParentsResolved | ParentUnresolved


def resolve_parents(
    fmodels: Sequence[FmodelPatch],
    files: Iterable[AnchoredRow],
) -> ParentResolution:
    """Bind each fmodel to the first file whose anchor equals its ``parentAnchor``."""

    file_ids: dict[str, UUID] = {}
    for file in files:
        file_ids.setdefault(file.anchor, file.id)

    resolved: list[ResolvedFmodel] = []
    for fmodel in fmodels:
        parent_anchor, detached = fmodel.detach_parent()
        file_id = file_ids.get(parent_anchor) if isinstance(parent_anchor, str) else None
        if file_id is None:
            return ParentUnresolved(fmodel=fmodel, parent_anchor=parent_anchor)
        resolved.append(ResolvedFmodel(patch=detached, file_id=file_id))
    return ParentsResolved(fmodels=tuple(resolved))
