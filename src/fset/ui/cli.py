from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from fset.app import apply_diff, create_project, export_project
from fset.config import configure_logging
from fset.domain.projects import ProjectNotFound
from fset.domain.reconciliation import DiffCommitted, RejectionReason

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from fset.domain.reconciliation import DiffOutcome

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage fset projects and apply diffs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    project = subparsers.add_parser("project", help="Project management commands")
    project_sub = project.add_subparsers(dest="project_command", required=True)
    project_create = project_sub.add_parser("create", help="Create an empty project")
    project_create.add_argument(
        "--key",
        type=str,
        help="Unique project key (defaults to project_<unix seconds>)",
    )
    project_create.add_argument(
        "--description",
        type=str,
        help="Optional free-text description",
    )
    project_create.add_argument(
        "--order",
        type=int,
        default=0,
        help="Display order of the project",
    )
    project_show = project_sub.add_parser("show", help="Print a project as JSON")
    project_show.add_argument("name", help="Project anchor or key")

    diff = subparsers.add_parser("diff", help="Diff commands")
    diff_sub = diff.add_subparsers(dest="diff_command", required=True)
    diff_apply = diff_sub.add_parser("apply", help="Apply a JSON diff to a project")
    diff_apply.add_argument("name", help="Project anchor or key")
    diff_apply.add_argument("path", help="Path to the diff JSON file, or - for stdin")

    return parser.parse_args(list(argv))


def _read_payload(path: str) -> object:
    try:
        text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
        return json.loads(text)
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read diff from {path}: {exc}") from exc


def _report_outcome(outcome: DiffOutcome | ProjectNotFound) -> int:
    if isinstance(outcome, ProjectNotFound):
        log.error("Project %s not found", outcome.name)
        return EXIT_FAILED
    if isinstance(outcome, DiffCommitted):
        summary = outcome.summary
        print(  # noqa: T201
            json.dumps(
                {
                    "status": "committed",
                    "project_updated": summary.project_updated,
                    "files_upserted": summary.files_upserted,
                    "files_deleted": summary.files_deleted,
                    "fmodels_upserted": summary.fmodels_upserted,
                    "fmodels_deleted": summary.fmodels_deleted,
                }
            )
        )
        return EXIT_OK
    log.error("Diff rejected (%s): %s", outcome.reason, outcome.message)
    if outcome.reason is RejectionReason.MALFORMED_ENTRY:
        return EXIT_USAGE
    return EXIT_FAILED


def _run(parsed_args: argparse.Namespace, payload: object) -> int:
    if parsed_args.command == "project" and parsed_args.project_command == "create":
        project = create_project(
            key=parsed_args.key,
            description=parsed_args.description,
            order=parsed_args.order,
        )
        print(json.dumps({"anchor": project.anchor, "key": project.key}))  # noqa: T201
        return EXIT_OK
    if parsed_args.command == "project" and parsed_args.project_command == "show":
        exported = export_project(parsed_args.name)
        if isinstance(exported, ProjectNotFound):
            log.error("Project %s not found", exported.name)
            return EXIT_FAILED
        print(exported.model_dump_json(indent=2))  # noqa: T201
        return EXIT_OK
    if parsed_args.command == "diff" and parsed_args.diff_command == "apply":
        return _report_outcome(apply_diff(parsed_args.name, payload))
    raise ValueError(f"Unsupported command: {parsed_args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    payload: object = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "diff":
            payload = _read_payload(parsed_args.path)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        code = _run(parsed_args, payload)
    except Exception:
        log.exception("Fatal error")
        sys.exit(EXIT_FAILED)
    sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
