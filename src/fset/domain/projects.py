"""Project provisioning and lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from fset.domain.model import Project, new_anchor, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from fset.domain.ports import ProjectRepository


@dataclass(frozen=True, slots=True)
class ProjectNotFound:
    """No project matches ``name`` by anchor or key."""

    name: str


def default_project_key(now: datetime) -> str:
    return f"project_{int(now.timestamp())}"


def new_project(
    *,
    key: str | None = None,
    description: str | None = None,
    order: int = 0,
    clock: Callable[[], datetime] = utc_now,
    anchor_factory: Callable[[], str] = new_anchor,
) -> Project:
    """Build a project, generating a key from ``clock`` when none is given."""

    now = clock()
    return Project(
        key=key or default_project_key(now),
        anchor=anchor_factory(),
        order=order,
        description=description,
        inserted_at=now,
        updated_at=now,
    )


def find_project(name: str, *, repository: ProjectRepository) -> Project | ProjectNotFound:
    """Look up a project by anchor when ``name`` is a UUID, otherwise by key."""

    try:
        anchor = UUID(name)
    except ValueError:
        project = repository.get_by_key(name)
    else:
        project = repository.get_by_anchor(str(anchor))
    if project is None:
        return ProjectNotFound(name)
    return project
