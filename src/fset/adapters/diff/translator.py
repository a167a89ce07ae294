"""Translate between the diff wire format and the domain."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from fset.domain.reconciliation import Diff, DiffBucket, MalformedEntryError

from .schema import DiffPayload, WireFile, WireFmodel, WireProject

if TYPE_CHECKING:
    from fset.domain.model import File, Fmodel, Project

    from .schema import RawEntries, RawEntry


def load_diff(raw: object) -> Diff:
    """Validate a decoded JSON payload (or JSON text) and return the domain diff."""

    try:
        if isinstance(raw, str | bytes):
            payload = DiffPayload.model_validate_json(raw)
        else:
            payload = DiffPayload.model_validate(raw)
    except ValidationError as exc:
        raise MalformedEntryError(f"Invalid diff payload: {exc}") from exc
    return translate_payload(payload)


def translate_payload(payload: DiffPayload) -> Diff:
    changed = removed = added = None
    if payload.changed is not None:
        changed = DiffBucket(
            project=payload.changed.project,
            files=_entries(payload.changed.files),
            fmodels=_entries(payload.changed.fmodels),
        )
    if payload.removed is not None:
        removed = DiffBucket(
            files=_entries(payload.removed.files),
            fmodels=_entries(payload.removed.fmodels),
        )
    if payload.added is not None:
        added = DiffBucket(
            files=_entries(payload.added.files),
            fmodels=_entries(payload.added.fmodels),
        )
    return Diff(changed=changed, removed=removed, added=added)


def project_to_wire(project: Project) -> WireProject:
    """Current persisted state in the shape clients diff against."""

    return WireProject(
        anchor=project.anchor,
        key=project.key,
        order=project.order,
        files=[_file_to_wire(file) for file in project.files],
    )


def _file_to_wire(file: File) -> WireFile:
    return WireFile(
        anchor=file.anchor,
        key=file.key,
        order=file.order,
        fmodels=[_fmodel_to_wire(fmodel) for fmodel in file.fmodels],
    )


def _fmodel_to_wire(fmodel: Fmodel) -> WireFmodel:
    return WireFmodel(
        anchor=fmodel.anchor,
        type=fmodel.type,
        key=fmodel.key,
        is_entry=fmodel.is_entry,
        sch=dict(fmodel.sch),
    )


def _entries(entries: RawEntries | None) -> tuple[RawEntry, ...]:
    if not entries:
        return ()
    return tuple(entries.values())
