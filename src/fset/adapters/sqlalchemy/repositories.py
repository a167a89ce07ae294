"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from itertools import groupby
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from fset.adapters.sqlalchemy.mappings import (
    TABLE_BY_KIND,
    file_table,
    fmodel_table,
    project_table,
)
from fset.domain.model import File, Project
from fset.domain.ports import Record, RowRef
from fset.domain.reconciliation.errors import ConflictViolationError
from fset.domain.reconciliation.policy import EntityKind

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from uuid import UUID

    from sqlalchemy import Select, Table
    from sqlalchemy.orm import InstrumentedAttribute, Session

    from fset.domain.reconciliation.policy import UpsertPolicy


class UnsupportedDialectError(RuntimeError):
    """Raised when upserts are requested on a database without ON CONFLICT support."""


_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class SqlAlchemyProjectRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, project: Project) -> None:
        self.session.add(project)

    def get_by_key(self, key: str) -> Project | None:
        return self._load_one(_project_query().where(project_table.c.key == key))

    def get_by_anchor(self, anchor: str) -> Project | None:
        return self._load_one(_project_query().where(project_table.c.anchor == anchor))

    def update(self, project: Project, values: Mapping[str, object]) -> Project:
        stmt = update(project_table).where(project_table.c.id == project.id).values(**values)
        try:
            self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictViolationError(f"Project update rejected: {exc.orig}") from exc
        updated = self.session.get(Project, project.id, populate_existing=True)
        if updated is None:
            raise ConflictViolationError(f"Project {project.key!r} no longer exists")
        return updated

    def _load_one(self, stmt: Select[tuple[Project]]) -> Project | None:
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyAnchoredRepository:
    """Shared batch writes for rows identified by an anchor."""

    def __init__(self, session: Session, kind: EntityKind) -> None:
        self.session = session
        self._kind = kind
        self._table: Table = TABLE_BY_KIND[kind]

    def insert_all(
        self,
        records: Sequence[Record],
        *,
        policy: UpsertPolicy,
        returning: bool = False,
    ) -> tuple[RowRef, ...]:
        """Upsert ``records`` following ``policy``, one statement per record shape.

        Records sharing a column set are written together; each group only
        overwrites the policy columns its records actually carry. Of several
        records sharing a conflict key only the last one is written.
        """

        if policy.kind is not self._kind:
            raise ValueError(f"Policy for {policy.kind} used on {self._kind} rows")
        rows: list[RowRef] = []
        distinct = _last_per_conflict_key(records, policy.conflict_target)
        for columns, group in groupby(
            sorted(distinct, key=_shape_key), key=lambda record: frozenset(record)
        ):
            result = self._upsert(list(group), columns, policy=policy, returning=returning)
            rows.extend(result)
        return tuple(rows)

    def _upsert(
        self,
        records: list[Record],
        columns: frozenset[str],
        *,
        policy: UpsertPolicy,
        returning: bool,
    ) -> list[RowRef]:
        insert = _dialect_insert(self.session)
        stmt = insert(self._table).values([dict(record) for record in records])
        replaced = policy.replaced_columns(columns)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(policy.conflict_target),
            set_={column: stmt.excluded[column] for column in replaced},
        )
        if returning:
            stmt = stmt.returning(self._table.c.id, self._table.c.anchor)
        try:
            result = self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictViolationError(f"{self._kind} upsert rejected: {exc.orig}") from exc
        if not returning:
            return []
        return [RowRef(id=row.id, anchor=row.anchor) for row in result]

    def _delete(self, *criteria: Any) -> int:
        stmt = delete(self._table).where(*criteria)
        try:
            result = self.session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictViolationError(f"{self._kind} delete rejected: {exc.orig}") from exc
        return cast("int", getattr(result, "rowcount", 0))


class SqlAlchemyFileRepository(SqlAlchemyAnchoredRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, EntityKind.FILE)

    def delete_by_anchors(self, anchors: Collection[str], *, project_id: UUID) -> int:
        """Delete this project's files with the given anchors, fmodels first."""

        if not anchors:
            return 0
        file_ids = select(file_table.c.id).where(
            file_table.c.project_id == project_id,
            file_table.c.anchor.in_(list(anchors)),
        )
        self.session.execute(delete(fmodel_table).where(fmodel_table.c.file_id.in_(file_ids)))
        return self._delete(
            file_table.c.project_id == project_id,
            file_table.c.anchor.in_(list(anchors)),
        )


class SqlAlchemyFmodelRepository(SqlAlchemyAnchoredRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, EntityKind.FMODEL)

    def delete_by_anchors(self, anchors: Collection[str]) -> int:
        if not anchors:
            return 0
        return self._delete(fmodel_table.c.anchor.in_(list(anchors)))


def _project_query() -> Select[tuple[Project]]:
    files = cast("InstrumentedAttribute[list[File]]", Project.files)
    fmodels = cast("InstrumentedAttribute[list[Any]]", File.fmodels)
    return select(Project).options(selectinload(files).selectinload(fmodels))


def _shape_key(record: Record) -> tuple[str, ...]:
    return tuple(sorted(record))


def _last_per_conflict_key(
    records: Sequence[Record], conflict_target: Sequence[str]
) -> list[Record]:
    latest: dict[tuple[object, ...], Record] = {}
    for record in records:
        key = tuple(record.get(column) for column in conflict_target)
        latest.pop(key, None)
        latest[key] = record
    return list(latest.values())


def _dialect_insert(session: Session) -> Any:
    dialect = session.get_bind().dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise UnsupportedDialectError(f"Upserts are not supported on {dialect!r}") from None


if TYPE_CHECKING:
    from fset.domain.ports import FileRepository, FmodelRepository, ProjectRepository

    _session_stub = cast("Session", object())
    _project_repo: ProjectRepository = SqlAlchemyProjectRepository(_session_stub)
    _file_repo: FileRepository = SqlAlchemyFileRepository(_session_stub)
    _fmodel_repo: FmodelRepository = SqlAlchemyFmodelRepository(_session_stub)
