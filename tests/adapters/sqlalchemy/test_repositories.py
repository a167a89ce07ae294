"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session  # noqa: TC002

from fset.adapters.sqlalchemy.mappings import file_table, fmodel_table, project_table
from fset.adapters.sqlalchemy.repositories import (
    SqlAlchemyFileRepository,
    SqlAlchemyFmodelRepository,
    SqlAlchemyProjectRepository,
)
from fset.domain.model import Project
from fset.domain.reconciliation import ConflictViolationError
from fset.domain.reconciliation.policy import (
    ADDED_FILES,
    ADDED_FMODELS,
    CHANGED_FILES,
    CHANGED_FMODELS,
)
from tests.helpers.documents import FIXED_NOW, make_file, make_fmodel, make_project


def _seed(session: Session, project: Project) -> Project:
    session.add(project)
    session.commit()
    return project


def _file_row(session: Session, anchor: str) -> tuple[str, int]:
    row = session.execute(
        select(file_table.c.key, file_table.c.order).where(file_table.c.anchor == anchor)
    ).one()
    return row.key, row.order


def test_project_repository_loads_by_key_and_anchor(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project("demo", files=[make_file("f1")]))
    repository = SqlAlchemyProjectRepository(sqlite_session)

    by_key = repository.get_by_key("demo")
    by_anchor = repository.get_by_anchor(project.anchor)

    assert by_key is not None
    assert by_key is by_anchor
    assert [file.anchor for file in by_key.files] == ["f1"]
    assert repository.get_by_key("other") is None


def test_project_repository_update_writes_only_given_columns(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project("demo"))
    repository = SqlAlchemyProjectRepository(sqlite_session)

    updated = repository.update(project, {"description": "Schemas", "order": 3})
    sqlite_session.commit()

    row = sqlite_session.execute(
        select(project_table.c.key, project_table.c.order, project_table.c.description)
    ).one()
    assert tuple(row) == ("demo", 3, "Schemas")
    assert updated.description == "Schemas"


def test_project_repository_update_rejects_duplicate_key(sqlite_session: Session) -> None:
    _seed(sqlite_session, make_project("taken", anchor="a-1"))
    project = _seed(sqlite_session, make_project("demo", anchor="a-2"))
    repository = SqlAlchemyProjectRepository(sqlite_session)

    with pytest.raises(ConflictViolationError):
        repository.update(project, {"key": "taken"})


def test_changed_files_upsert_on_key_within_project(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project(files=[make_file("f1", "a.json")]))
    repository = SqlAlchemyFileRepository(sqlite_session)

    repository.insert_all(
        [{"anchor": "f1", "key": "a.json", "order": 5, "project_id": project.id}],
        policy=CHANGED_FILES,
    )

    assert _file_row(sqlite_session, "f1") == ("a.json", 5)
    assert sqlite_session.scalar(select(func.count()).select_from(file_table)) == 1


def test_added_files_return_existing_identity_on_anchor_conflict(
    sqlite_session: Session,
) -> None:
    existing = make_file("f1", "a.json")
    project = _seed(sqlite_session, make_project(files=[existing]))
    repository = SqlAlchemyFileRepository(sqlite_session)

    rows = repository.insert_all(
        [
            {"anchor": "f1", "key": "renamed.json", "project_id": project.id},
            {"anchor": "f2", "key": "b.json", "order": 1, "project_id": project.id},
        ],
        policy=ADDED_FILES,
        returning=True,
    )

    by_anchor = {row.anchor: row.id for row in rows}
    assert set(by_anchor) == {"f1", "f2"}
    assert by_anchor["f1"] == existing.id
    assert _file_row(sqlite_session, "f1") == ("renamed.json", 0)
    assert _file_row(sqlite_session, "f2") == ("b.json", 1)


def test_added_file_with_taken_key_is_a_conflict(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project(files=[make_file("f1", "a.json")]))
    repository = SqlAlchemyFileRepository(sqlite_session)

    with pytest.raises(ConflictViolationError):
        repository.insert_all(
            [{"anchor": "f2", "key": "a.json", "project_id": project.id}],
            policy=ADDED_FILES,
            returning=True,
        )


def test_fmodel_upsert_replaces_only_present_columns(sqlite_session: Session) -> None:
    fmodel = make_fmodel("m1", type="string", key="name", is_entry=True, sch={"a": 1})
    project = _seed(sqlite_session, make_project(files=[make_file("f1", fmodels=[fmodel])]))
    file_id = project.files[0].id
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    repository.insert_all(
        [{"anchor": "m1", "key": "title", "sch": {"b": 2}, "file_id": file_id}],
        policy=CHANGED_FMODELS,
    )

    row = sqlite_session.execute(
        select(fmodel_table.c.type, fmodel_table.c.key, fmodel_table.c.is_entry, fmodel_table.c.sch)
    ).one()
    assert tuple(row) == ("string", "title", True, {"b": 2})


def test_fmodel_insert_applies_column_defaults(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project(files=[make_file("f1")]))
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    repository.insert_all(
        [{"anchor": "m1", "sch": {}, "file_id": project.files[0].id, "inserted_at": FIXED_NOW}],
        policy=ADDED_FMODELS,
    )

    row = sqlite_session.execute(
        select(fmodel_table.c.is_entry, fmodel_table.c.inserted_at, fmodel_table.c.id)
    ).one()
    assert row.is_entry is False
    assert row.inserted_at == FIXED_NOW
    assert row.id is not None


def test_policy_kind_must_match_repository(sqlite_session: Session) -> None:
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    with pytest.raises(ValueError, match="Policy for file"):
        repository.insert_all([{"anchor": "f1"}], policy=ADDED_FILES)


def test_file_delete_is_scoped_to_project_and_removes_fmodels(sqlite_session: Session) -> None:
    mine = _seed(
        sqlite_session,
        make_project(
            "mine",
            anchor="a-1",
            files=[make_file("f1", fmodels=[make_fmodel("m1"), make_fmodel("m2")])],
        ),
    )
    _seed(sqlite_session, make_project("theirs", anchor="a-2", files=[make_file("f2")]))
    repository = SqlAlchemyFileRepository(sqlite_session)

    deleted = repository.delete_by_anchors(["f1", "f2"], project_id=mine.id)
    sqlite_session.commit()

    assert deleted == 1
    remaining_files = sqlite_session.scalars(select(file_table.c.anchor)).all()
    assert remaining_files == ["f2"]
    assert sqlite_session.scalar(select(func.count()).select_from(fmodel_table)) == 0


def test_fmodel_delete_ignores_unknown_anchors(sqlite_session: Session) -> None:
    _seed(sqlite_session, make_project(files=[make_file("f1", fmodels=[make_fmodel("m1")])]))
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    assert repository.delete_by_anchors([]) == 0
    assert repository.delete_by_anchors(["m1", "missing"]) == 1


def test_repeated_anchor_in_one_batch_keeps_last_record(sqlite_session: Session) -> None:
    project = _seed(sqlite_session, make_project(files=[make_file("f1")]))
    file_id = project.files[0].id
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    repository.insert_all(
        [
            {"anchor": "m1", "type": "string", "sch": {}, "file_id": file_id},
            {"anchor": "m1", "type": "number", "sch": {"minimum": 0}, "file_id": file_id},
        ],
        policy=ADDED_FMODELS,
    )

    rows = sqlite_session.execute(select(fmodel_table.c.type, fmodel_table.c.sch)).all()
    assert [tuple(row) for row in rows] == [("number", {"minimum": 0})]


def test_fmodel_for_missing_file_is_a_conflict(sqlite_session: Session) -> None:
    repository = SqlAlchemyFmodelRepository(sqlite_session)

    with pytest.raises(ConflictViolationError):
        repository.insert_all(
            [{"anchor": "m1", "sch": {}, "file_id": uuid.uuid4()}],
            policy=ADDED_FMODELS,
        )
