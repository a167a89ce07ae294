from __future__ import annotations

import io
import json
from pathlib import Path  # noqa: TC003

import pytest

from fset.adapters.diff import WireProject
from fset.domain.model import Project
from fset.domain.projects import ProjectNotFound
from fset.domain.reconciliation import (
    DiffCommitted,
    DiffRejected,
    DiffSummary,
    RejectionReason,
)
from fset.ui import cli as cli_module


def _exit_code(argv: list[str]) -> int | str | None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)
    return excinfo.value.code


def test_project_create_passes_flags(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_create(**kwargs: object) -> Project:
        captured.update(kwargs)
        return Project(key="docs", anchor="anchor-1")

    monkeypatch.setattr(cli_module, "create_project", fake_create)

    code = _exit_code(["project", "create", "--key", "docs", "--order", "3"])

    assert code == 0
    assert captured == {"key": "docs", "description": None, "order": 3}
    assert json.loads(capsys.readouterr().out) == {"anchor": "anchor-1", "key": "docs"}


def test_project_show_prints_wire_document(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        cli_module,
        "export_project",
        lambda name: WireProject(anchor="anchor-1", key=name, order=0),
    )

    code = _exit_code(["project", "show", "docs"])

    assert code == 0
    assert json.loads(capsys.readouterr().out)["key"] == "docs"


def test_project_show_missing_project_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "export_project", ProjectNotFound)

    assert _exit_code(["project", "show", "nope"]) == 1


def test_diff_apply_reads_file_and_reports_summary(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path
) -> None:
    captured: dict[str, object] = {}

    def fake_apply(name: str, payload: object) -> DiffCommitted:
        captured["name"] = name
        captured["payload"] = payload
        return DiffCommitted(summary=DiffSummary(files_upserted=2))

    monkeypatch.setattr(cli_module, "apply_diff", fake_apply)
    path = tmp_path / "diff.json"
    path.write_text('{"added": {"files": {}}}', encoding="utf-8")

    code = _exit_code(["diff", "apply", "docs", str(path)])

    assert code == 0
    assert captured == {"name": "docs", "payload": {"added": {"files": {}}}}
    report = json.loads(capsys.readouterr().out)
    assert report["status"] == "committed"
    assert report["files_upserted"] == 2


def test_diff_apply_reads_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_apply(name: str, payload: object) -> DiffCommitted:
        captured["payload"] = payload
        return DiffCommitted(summary=DiffSummary())

    monkeypatch.setattr(cli_module, "apply_diff", fake_apply)
    monkeypatch.setattr("sys.stdin", io.StringIO('{"removed": null}'))

    assert _exit_code(["diff", "apply", "docs", "-"]) == 0
    assert captured["payload"] == {"removed": None}


@pytest.mark.parametrize(
    ("reason", "expected"),
    [
        (RejectionReason.MALFORMED_ENTRY, 2),
        (RejectionReason.UNRESOLVED_PARENT, 1),
        (RejectionReason.CONFLICT_VIOLATION, 1),
    ],
)
def test_diff_apply_rejections_map_to_exit_codes(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, reason: RejectionReason, expected: int
) -> None:
    monkeypatch.setattr(
        cli_module,
        "apply_diff",
        lambda name, payload: DiffRejected(reason=reason, message="nope"),
    )
    path = tmp_path / "diff.json"
    path.write_text("{}", encoding="utf-8")

    assert _exit_code(["diff", "apply", "docs", str(path)]) == expected


def test_diff_apply_unknown_project_fails(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli_module, "apply_diff", lambda name, payload: ProjectNotFound(name))
    path = tmp_path / "diff.json"
    path.write_text("{}", encoding="utf-8")

    assert _exit_code(["diff", "apply", "docs", str(path)]) == 1


def test_diff_apply_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "diff.json"
    path.write_text("{not json", encoding="utf-8")

    assert _exit_code(["diff", "apply", "docs", str(path)]) == 2


def test_diff_apply_rejects_missing_file(tmp_path: Path) -> None:
    assert _exit_code(["diff", "apply", "docs", str(tmp_path / "missing.json")]) == 2


def test_unexpected_errors_exit_with_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(**_: object) -> Project:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cli_module, "create_project", boom)

    assert _exit_code(["project", "create"]) == 1


def test_missing_subcommand_is_a_usage_error() -> None:
    assert _exit_code(["project"]) == 2
