from __future__ import annotations

from fset.domain.model import Project, utc_now
from tests.helpers.documents import make_file, make_fmodel, make_project


def test_project_defaults_to_fresh_anchor() -> None:
    first = Project(key="a")
    second = Project(key="b")

    assert first.anchor != second.anchor
    assert first.id != second.id


def test_find_file_and_fmodel_by_anchor() -> None:
    fmodel = make_fmodel("m1", type="object")
    project = make_project(files=[make_file("f1", fmodels=[fmodel])])

    file = project.find_file("f1")

    assert file is not None
    assert file.project_id == project.id
    assert file.find_fmodel("m1") is fmodel
    assert fmodel.file_id == file.id
    assert project.find_file("f2") is None
    assert file.find_fmodel("m2") is None


def test_utc_now_has_second_precision() -> None:
    now = utc_now()

    assert now.microsecond == 0
    assert now.utcoffset() is not None
