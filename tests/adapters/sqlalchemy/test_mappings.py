from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import inspect, select

from fset.adapters.sqlalchemy.mappings import TABLE_BY_KIND, file_table, fmodel_table
from fset.domain.model import Project
from fset.domain.reconciliation.policy import EntityKind
from tests.helpers.documents import FIXED_NOW, make_file, make_fmodel, make_project

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_migrations_create_document_tables(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    assert {"project", "file", "fmodel"} <= set(inspector.get_table_names())
    file_uniques = {tuple(uc["column_names"]) for uc in inspector.get_unique_constraints("file")}
    assert ("key", "project_id") in file_uniques
    assert ("anchor",) in file_uniques
    fmodel_fks = inspector.get_foreign_keys("fmodel")
    assert [fk["referred_table"] for fk in fmodel_fks] == ["file"]


def test_table_by_kind_covers_every_entity() -> None:
    assert set(TABLE_BY_KIND) == set(EntityKind)
    assert TABLE_BY_KIND[EntityKind.FILE] is file_table
    assert TABLE_BY_KIND[EntityKind.FMODEL] is fmodel_table


def test_document_round_trip(sqlite_session: Session) -> None:
    fmodel = make_fmodel(
        "m1", type="object", key="root", is_entry=True, sch={"properties": {"a": 1}}
    )
    project = make_project(files=[make_file("f1", "a.json", fmodels=[fmodel])])
    project.description = "Schemas"
    sqlite_session.add(project)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.execute(select(Project)).scalar_one()

    assert loaded.description == "Schemas"
    assert loaded.inserted_at == FIXED_NOW
    (file,) = loaded.files
    assert (file.anchor, file.key, file.project_id) == ("f1", "a.json", loaded.id)
    (stored,) = file.fmodels
    assert stored.sch == {"properties": {"a": 1}}
    assert stored.is_entry is True
    assert stored.file_id == file.id


def test_files_are_ordered_by_order_then_key(sqlite_session: Session) -> None:
    project = make_project(
        files=[
            make_file("f1", "c.json", order=1),
            make_file("f2", "b.json", order=0),
            make_file("f3", "a.json", order=1),
        ]
    )
    sqlite_session.add(project)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.execute(select(Project)).scalar_one()

    assert [file.anchor for file in loaded.files] == ["f2", "f3", "f1"]


def test_fmodels_are_ordered_by_insertion_then_anchor(sqlite_session: Session) -> None:
    late = make_fmodel("m0")
    late.inserted_at = FIXED_NOW + timedelta(seconds=1)
    fmodels = [late, make_fmodel("m2"), make_fmodel("m1")]
    project = make_project(files=[make_file("f1", fmodels=fmodels)])
    sqlite_session.add(project)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.execute(select(Project)).scalar_one()

    assert [fmodel.anchor for fmodel in loaded.files[0].fmodels] == ["m1", "m2", "m0"]
