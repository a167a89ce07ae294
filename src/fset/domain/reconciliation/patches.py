"""Typed partial attribute sets produced by the diff translator.

Attributes absent from the originating entry hold ``UNSET`` and are left out of
``values()``; they are never written as null.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Final

from .fields import UNSET, Maybe

PARENT_ANCHOR_FIELD: Final[str] = "parentAnchor"


def _present(**values: object) -> dict[str, object]:
    return {name: value for name, value in values.items() if value is not UNSET}


@dataclass(frozen=True, slots=True, kw_only=True)
class ProjectPatch:
    anchor: str
    key: Maybe[str | None] = UNSET
    order: Maybe[int | None] = UNSET
    description: Maybe[str | None] = UNSET

    def values(self) -> dict[str, object]:
        """Attributes to write. The anchor identifies the project and is never written."""
        return _present(key=self.key, order=self.order, description=self.description)


@dataclass(frozen=True, slots=True, kw_only=True)
class FmodelPatch:
    anchor: str
    type: Maybe[str | None] = UNSET
    key: Maybe[str | None] = UNSET
    is_entry: Maybe[bool | None] = UNSET
    sch: dict[str, Any] = field(default_factory=dict[str, Any])

    @property
    def parent_anchor(self) -> object:
        return self.sch.get(PARENT_ANCHOR_FIELD)

    def with_parent(self, parent_anchor: str) -> FmodelPatch:
        """Return a copy whose payload names ``parent_anchor`` unless one is already set."""
        if self.parent_anchor is not None:
            return self
        return replace(self, sch={**self.sch, PARENT_ANCHOR_FIELD: parent_anchor})

    def detach_parent(self) -> tuple[object, FmodelPatch]:
        """Split off the parent marker; the returned patch no longer carries it."""
        sch = dict(self.sch)
        parent_anchor = sch.pop(PARENT_ANCHOR_FIELD, None)
        return parent_anchor, replace(self, sch=sch)

    def values(self) -> dict[str, object]:
        return {
            "anchor": self.anchor,
            **_present(type=self.type, key=self.key, is_entry=self.is_entry),
            "sch": self.sch,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class FilePatch:
    anchor: str
    key: Maybe[str | None] = UNSET
    order: Maybe[int | None] = UNSET
    fmodels: tuple[FmodelPatch, ...] = ()

    def values(self) -> dict[str, object]:
        return {"anchor": self.anchor, **_present(key=self.key, order=self.order)}

    def nested_fmodels(self) -> tuple[FmodelPatch, ...]:
        """Fmodels nested in this entry, parented to this file unless they say otherwise."""
        return tuple(fmodel.with_parent(self.anchor) for fmodel in self.fmodels)
