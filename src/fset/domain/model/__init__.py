"""Public domain model surface."""

from __future__ import annotations

from fset.domain.model.document import File, Fmodel, Project
from fset.domain.model.entity import Entity, new_anchor, new_id, utc_now

__all__ = [
    "Entity",
    "File",
    "Fmodel",
    "Project",
    "new_anchor",
    "new_id",
    "utc_now",
]
