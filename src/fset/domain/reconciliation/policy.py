"""Upsert policy: conflict targets and replaced columns per entity kind and phase.

Anchors are the durable identity once both sides know them. Changed files are
matched by their human key instead, because the client may not have confirmed
their anchor yet. The project itself is only ever updated by identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class EntityKind(StrEnum):
    PROJECT = "project"
    FILE = "file"
    FMODEL = "fmodel"


class DiffPhase(StrEnum):
    CHANGED = "changed"
    ADDED = "added"


@dataclass(frozen=True, slots=True)
class UpsertPolicy:
    kind: EntityKind
    conflict_target: tuple[str, ...]
    replace: tuple[str, ...]

    def replaced_columns(self, present: frozenset[str] | set[str]) -> tuple[str, ...]:
        """Columns to overwrite on conflict for records carrying ``present`` columns.

        Falls back to the conflict target itself, a no-op update that still lets the
        store return the existing row.
        """
        columns = tuple(column for column in self.replace if column in present)
        return columns or self.conflict_target


CHANGED_FILES: Final = UpsertPolicy(EntityKind.FILE, ("key", "project_id"), ("key", "order"))
CHANGED_FMODELS: Final = UpsertPolicy(
    EntityKind.FMODEL, ("anchor",), ("key", "type", "is_entry", "sch")
)
ADDED_FILES: Final = UpsertPolicy(EntityKind.FILE, ("anchor",), ("key", "order"))
ADDED_FMODELS: Final = UpsertPolicy(
    EntityKind.FMODEL, ("anchor",), ("key", "type", "is_entry", "sch")
)

_POLICIES: Final[dict[tuple[EntityKind, DiffPhase], UpsertPolicy]] = {
    (EntityKind.FILE, DiffPhase.CHANGED): CHANGED_FILES,
    (EntityKind.FMODEL, DiffPhase.CHANGED): CHANGED_FMODELS,
    (EntityKind.FILE, DiffPhase.ADDED): ADDED_FILES,
    (EntityKind.FMODEL, DiffPhase.ADDED): ADDED_FMODELS,
}


def upsert_policy(kind: EntityKind, phase: DiffPhase) -> UpsertPolicy:
    try:
        return _POLICIES[kind, phase]
    except KeyError:
        raise ValueError(f"No upsert policy for {kind} in phase {phase}") from None
