"""Apply a diff to a project as one unit of work.

Phases run in a fixed order that encodes the dependencies between rows:

1) update: the project row, changed files, changed fmodels
2) delete: removed fmodels, then removed files (children before parents)
3) insert: added files, then added fmodels bound to the file rows the store
   returned for the insert

Changed fmodels are only resolved against files that existed before the diff.
Added fmodels are resolved against the pre-existing files plus the rows returned
by the added-file upsert, so children can reference parents created in the same
transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fset.domain.model import utc_now

from .contracts import DiffCommitted, DiffRejected, DiffSummary, RejectionReason
from .errors import ConflictViolationError, MalformedEntryError
from .guard import ParentUnresolved, resolve_parents
from .policy import DiffPhase, EntityKind, upsert_policy
from .translate import translate_diff

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from fset.domain.model import Project
    from fset.domain.ports import DocumentRepositories, DocumentUnitOfWork, Record

    from .contracts import DiffOutcome
    from .diff import Diff
    from .guard import AnchoredRow
    from .patches import FilePatch, FmodelPatch
    from .translate import TranslatedDiff

    type Clock = Callable[[], datetime]

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Persist diffs through units of work produced by ``unit_of_work_factory``."""

    unit_of_work_factory: Callable[[], DocumentUnitOfWork]
    clock: Clock = field(default=utc_now)

    def persist_diff(self, diff: Diff, project: Project) -> DiffOutcome:
        """Apply ``diff`` to ``project`` atomically.

        ``project`` must have its files loaded; they are the parents available to
        changed fmodels. The in-memory project is not modified.
        """

        try:
            translated = translate_diff(diff)
            _check_project_anchor(translated, project)
        except MalformedEntryError as exc:
            log.warning("Rejected diff for project %s: %s", project.key, exc)
            return DiffRejected(reason=RejectionReason.MALFORMED_ENTRY, message=str(exc))

        timestamp = self.clock()
        summary = DiffSummary()
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                unresolved = self._update(repositories, project, translated, timestamp, summary)
                if unresolved is None:
                    self._delete(repositories, project, translated, summary)
                    unresolved = self._insert(
                        repositories, project, translated, timestamp, summary
                    )
                if unresolved is not None:
                    uow.rollback()
                    return _reject_unresolved(project, unresolved)
                uow.commit()
        except ConflictViolationError as exc:
            log.warning("Rejected diff for project %s: %s", project.key, exc)
            return DiffRejected(reason=RejectionReason.CONFLICT_VIOLATION, message=str(exc))

        log.info(
            "Committed diff for project %s: files upserted=%s deleted=%s, "
            "fmodels upserted=%s deleted=%s, project updated=%s",
            project.key,
            summary.files_upserted,
            summary.files_deleted,
            summary.fmodels_upserted,
            summary.fmodels_deleted,
            summary.project_updated,
        )
        return DiffCommitted(summary=summary)

    def _update(
        self,
        repositories: DocumentRepositories,
        project: Project,
        diff: TranslatedDiff,
        timestamp: datetime,
        summary: DiffSummary,
    ) -> ParentUnresolved | None:
        if diff.project is not None:
            values = diff.project.values()
            if values:
                repositories.projects.update(project, {**values, "updated_at": timestamp})
                summary.project_updated = True

        file_records = _file_records(diff.changed_files, project, timestamp)
        if file_records:
            repositories.files.insert_all(
                file_records, policy=upsert_policy(EntityKind.FILE, DiffPhase.CHANGED)
            )
            summary.files_upserted += len(file_records)

        resolution = _fmodel_records(diff.changed_fmodels, project.files, timestamp)
        if isinstance(resolution, ParentUnresolved):
            return resolution
        if resolution:
            repositories.fmodels.insert_all(
                resolution, policy=upsert_policy(EntityKind.FMODEL, DiffPhase.CHANGED)
            )
            summary.fmodels_upserted += len(resolution)
        log.debug("Update phase staged for project %s", project.key)
        return None

    def _delete(
        self,
        repositories: DocumentRepositories,
        project: Project,
        diff: TranslatedDiff,
        summary: DiffSummary,
    ) -> None:
        if diff.removed_fmodel_anchors:
            summary.fmodels_deleted += repositories.fmodels.delete_by_anchors(
                diff.removed_fmodel_anchors
            )
        if diff.removed_file_anchors:
            summary.files_deleted += repositories.files.delete_by_anchors(
                diff.removed_file_anchors, project_id=project.id
            )
        log.debug("Delete phase staged for project %s", project.key)

    def _insert(
        self,
        repositories: DocumentRepositories,
        project: Project,
        diff: TranslatedDiff,
        timestamp: datetime,
        summary: DiffSummary,
    ) -> ParentUnresolved | None:
        inserted: Sequence[AnchoredRow] = ()
        file_records = _file_records(diff.added_files, project, timestamp)
        if file_records:
            inserted = repositories.files.insert_all(
                file_records,
                policy=upsert_policy(EntityKind.FILE, DiffPhase.ADDED),
                returning=True,
            )
            summary.files_upserted += len(file_records)

        # files removed earlier in this diff are gone from the database
        removed = set(diff.removed_file_anchors)
        surviving = [file for file in project.files if file.anchor not in removed]
        known_files: list[AnchoredRow] = [*inserted, *surviving]
        resolution = _fmodel_records(diff.added_fmodels, known_files, timestamp)
        if isinstance(resolution, ParentUnresolved):
            return resolution
        if resolution:
            repositories.fmodels.insert_all(
                resolution, policy=upsert_policy(EntityKind.FMODEL, DiffPhase.ADDED)
            )
            summary.fmodels_upserted += len(resolution)
        log.debug("Insert phase staged for project %s", project.key)
        return None


def _check_project_anchor(diff: TranslatedDiff, project: Project) -> None:
    if diff.project is not None and diff.project.anchor != project.anchor:
        raise MalformedEntryError(
            f"Project entry anchor {diff.project.anchor!r} does not match "
            f"project {project.key!r} ({project.anchor})"
        )


def _file_records(
    files: Sequence[FilePatch], project: Project, timestamp: datetime
) -> list[Record]:
    return [
        {
            **file.values(),
            "project_id": project.id,
            "inserted_at": timestamp,
            "updated_at": timestamp,
        }
        for file in files
    ]


def _fmodel_records(
    fmodels: Sequence[FmodelPatch],
    files: Sequence[AnchoredRow],
    timestamp: datetime,
) -> list[Record] | ParentUnresolved:
    resolution = resolve_parents(fmodels, files)
    if isinstance(resolution, ParentUnresolved):
        return resolution
    return [
        {**fmodel.record(), "inserted_at": timestamp, "updated_at": timestamp}
        for fmodel in resolution.fmodels
    ]


def _reject_unresolved(project: Project, unresolved: ParentUnresolved) -> DiffRejected:
    message = (
        f"Fmodel {unresolved.fmodel.anchor!r} references unknown file "
        f"{unresolved.parent_anchor!r}"
    )
    log.warning("Rolled back diff for project %s: %s", project.key, message)
    return DiffRejected(
        reason=RejectionReason.UNRESOLVED_PARENT,
        message=message,
        offending=unresolved.fmodel,
    )
