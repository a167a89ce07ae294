"""In-memory shape of one submitted diff."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .fields import Entry


@dataclass(frozen=True, slots=True)
class DiffBucket:
    """Entries of one bucket (``changed``, ``removed`` or ``added``) split by kind."""

    project: Entry | None = None
    files: tuple[Entry, ...] = ()
    fmodels: tuple[Entry, ...] = ()


@dataclass(frozen=True, slots=True)
class Diff:
    """A diff against one project. A missing bucket means nothing to do in that phase."""

    changed: DiffBucket | None = None
    removed: DiffBucket | None = None
    added: DiffBucket | None = None
