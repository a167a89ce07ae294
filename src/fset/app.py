"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from fset.adapters.diff import load_diff, project_to_wire
from fset.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyDocumentUnitOfWork,
    is_started,
    startup,
)
from fset.domain.model import utc_now
from fset.domain.ports import DocumentUnitOfWork
from fset.domain.projects import ProjectNotFound, find_project, new_project
from fset.domain.reconciliation import (
    DiffRejected,
    MalformedEntryError,
    ReconciliationEngine,
    RejectionReason,
)

if TYPE_CHECKING:
    from datetime import datetime

    from fset.adapters.diff import WireProject
    from fset.domain.model import Project
    from fset.domain.reconciliation import DiffOutcome

UnitOfWorkFactory = Callable[[], DocumentUnitOfWork]


log = getLogger(__name__)


def create_project(
    *,
    key: str | None = None,
    description: str | None = None,
    order: int = 0,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> Project:
    """Persist a new, empty project and return it."""

    effective_uow = _resolve_uow(unit_of_work_factory)
    project = new_project(key=key, description=description, order=order, clock=clock)
    with effective_uow() as uow:
        uow.repositories.projects.add(project)
        uow.commit()
    log.info("Created project %s (%s)", project.key, project.anchor)
    return project


def load_project(
    name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Project | ProjectNotFound:
    """Load a project with its files and fmodels by anchor or key."""

    effective_uow = _resolve_uow(unit_of_work_factory)
    with effective_uow() as uow:
        return find_project(name, repository=uow.repositories.projects)


def apply_diff(
    name: str,
    payload: object,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> DiffOutcome | ProjectNotFound:
    """Validate ``payload`` and persist it against the named project."""

    effective_uow = _resolve_uow(unit_of_work_factory)
    try:
        diff = load_diff(payload)
    except MalformedEntryError as exc:
        log.warning("Rejected diff payload for %s: %s", name, exc)
        return DiffRejected(reason=RejectionReason.MALFORMED_ENTRY, message=str(exc))

    project = load_project(name, unit_of_work_factory=effective_uow)
    if isinstance(project, ProjectNotFound):
        log.warning("Project %s not found", name)
        return project

    engine = ReconciliationEngine(unit_of_work_factory=effective_uow, clock=clock)
    return engine.persist_diff(diff, project)


def export_project(
    name: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> WireProject | ProjectNotFound:
    project = load_project(name, unit_of_work_factory=unit_of_work_factory)
    if isinstance(project, ProjectNotFound):
        return project
    return project_to_wire(project)


def _resolve_uow(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyDocumentUnitOfWork
