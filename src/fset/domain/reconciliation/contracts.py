"""Outcome types of one diff application."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .patches import FmodelPatch


class RejectionReason(StrEnum):
    MALFORMED_ENTRY = "malformed_entry"
    UNRESOLVED_PARENT = "unresolved_parent"
    CONFLICT_VIOLATION = "conflict_violation"


@dataclass(slots=True)
class DiffSummary:
    """Counts of the writes issued by one committed diff."""

    project_updated: bool = False
    files_upserted: int = 0
    fmodels_upserted: int = 0
    files_deleted: int = 0
    fmodels_deleted: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class DiffCommitted:
    summary: DiffSummary
    committed: Literal[True] = True


@dataclass(frozen=True, slots=True, kw_only=True)
class DiffRejected:
    """The diff was not applied; persisted state is exactly as before."""

    reason: RejectionReason
    message: str
    offending: FmodelPatch | None = None
    committed: Literal[False] = False


type DiffOutcome = DiffCommitted | DiffRejected
