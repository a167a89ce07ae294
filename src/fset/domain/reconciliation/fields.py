"""Field accessors for loosely-typed diff entries.

A changed scalar may arrive wrapped as ``{"old": v0, "new": v1}``. The wrapper is
classified once into an explicit variant so that every caller reads the current
value the same way.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Final, Literal

from .errors import MalformedEntryError

type Entry = Mapping[str, object]

ANCHOR_FIELD: Final[str] = "$anchor"
_WRAPPER_KEYS: Final[frozenset[str]] = frozenset({"old", "new"})


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET
"""Marks a patch attribute that was absent from its entry."""

type Maybe[T] = T | Literal[_Unset.UNSET]


@dataclass(frozen=True, slots=True)
class Scalar:
    value: object


@dataclass(frozen=True, slots=True)
class OldNew:
    old: object
    new: object


type FieldValue = Scalar | OldNew


def classify(raw: object) -> FieldValue:
    """Classify a raw field value as a plain scalar or an old/new pair."""

    if isinstance(raw, Mapping) and "new" in raw and set(raw) <= _WRAPPER_KEYS:
        return OldNew(old=raw.get("old"), new=raw["new"])
    return Scalar(raw)


def current_value(value: FieldValue) -> object:
    match value:
        case OldNew(new=new):
            return new
        case Scalar(value=scalar):
            return scalar


def read_field(entry: Entry, name: str) -> FieldValue | None:
    """Return the classified value of ``name`` or ``None`` when it is absent.

    A ``null`` value counts as absent; an old/new pair whose ``new`` is ``null``
    does not.
    """

    raw = entry.get(name)
    if raw is None:
        return None
    return classify(raw)


def optional_field(entry: Entry, name: str) -> object:
    """Return the current value of ``name`` or ``UNSET`` when it is absent."""

    value = read_field(entry, name)
    if value is None:
        return UNSET
    return current_value(value)


def require_field(entry: Entry, name: str) -> object:
    """Return the current value of ``name`` or raise if the entry lacks it."""

    value = read_field(entry, name)
    if value is None:
        raise MalformedEntryError(f"Diff entry is missing required field {name!r}: {entry!r}")
    return current_value(value)


def require_anchor(entry: Entry) -> str:
    anchor = require_field(entry, ANCHOR_FIELD)
    if not isinstance(anchor, str) or not anchor:
        raise MalformedEntryError(f"Diff entry has an invalid anchor: {anchor!r}")
    return anchor
