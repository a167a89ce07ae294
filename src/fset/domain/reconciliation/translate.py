"""Translate diff entries into typed patches.

Only ``$anchor`` is required. Every other recognized field is copied when present
and left ``UNSET`` when absent. For fmodels, every unrecognized key is carried
verbatim into the opaque ``sch`` payload, which is how new schema-node fields flow
through without changes here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .errors import MalformedEntryError
from .fields import ANCHOR_FIELD, UNSET, optional_field, require_anchor
from .patches import FilePatch, FmodelPatch, ProjectPatch

if TYPE_CHECKING:
    from .diff import Diff, DiffBucket
    from .fields import Entry, Maybe

FMODEL_FIELDS: Final[frozenset[str]] = frozenset({ANCHOR_FIELD, "type", "key", "is_entry"})
NESTED_FMODELS_FIELD: Final[str] = "fields"


@dataclass(frozen=True, slots=True)
class TranslatedDiff:
    """Every entry of a diff translated, grouped the way the engine consumes them."""

    project: ProjectPatch | None = None
    changed_files: tuple[FilePatch, ...] = ()
    changed_fmodels: tuple[FmodelPatch, ...] = ()
    removed_file_anchors: tuple[str, ...] = ()
    removed_fmodel_anchors: tuple[str, ...] = ()
    added_files: tuple[FilePatch, ...] = ()
    added_fmodels: tuple[FmodelPatch, ...] = ()


def translate_project(entry: Entry) -> ProjectPatch:
    anchor = require_anchor(entry)
    return ProjectPatch(
        anchor=anchor,
        key=_optional_str(entry, "key", anchor),
        order=_optional_int(entry, "order", anchor),
        description=_optional_str(entry, "description", anchor),
    )


def translate_file(entry: Entry) -> FilePatch:
    anchor = require_anchor(entry)
    nested = optional_field(entry, NESTED_FMODELS_FIELD)
    fmodels: tuple[FmodelPatch, ...] = ()
    if nested is not UNSET:
        if not isinstance(nested, Mapping):
            raise MalformedEntryError(
                f"File {anchor!r}: {NESTED_FMODELS_FIELD!r} must map ids to fmodel entries"
            )
        fmodels = tuple(translate_fmodel(_as_entry(item)) for item in nested.values())
    return FilePatch(
        anchor=anchor,
        key=_optional_str(entry, "key", anchor),
        order=_optional_int(entry, "order", anchor),
        fmodels=fmodels,
    )


def translate_fmodel(entry: Entry) -> FmodelPatch:
    anchor = require_anchor(entry)
    return FmodelPatch(
        anchor=anchor,
        type=_optional_str(entry, "type", anchor),
        key=_optional_str(entry, "key", anchor),
        is_entry=_optional_bool(entry, "is_entry", anchor),
        sch={name: value for name, value in entry.items() if name not in FMODEL_FIELDS},
    )


def translate_diff(diff: Diff) -> TranslatedDiff:
    """Translate every entry of ``diff``; the first malformed entry fails the whole diff."""

    changed = diff.changed
    project: ProjectPatch | None = None
    changed_files: tuple[FilePatch, ...] = ()
    changed_fmodels: tuple[FmodelPatch, ...] = ()
    if changed is not None:
        if changed.project is not None:
            project = translate_project(changed.project)
        changed_files = tuple(translate_file(entry) for entry in changed.files)
        changed_fmodels = _fmodels_with_nested(changed, changed_files)

    removed_file_anchors: tuple[str, ...] = ()
    removed_fmodel_anchors: tuple[str, ...] = ()
    if diff.removed is not None:
        removed_file_anchors = tuple(translate_file(e).anchor for e in diff.removed.files)
        removed_fmodel_anchors = tuple(translate_fmodel(e).anchor for e in diff.removed.fmodels)

    added_files: tuple[FilePatch, ...] = ()
    added_fmodels: tuple[FmodelPatch, ...] = ()
    if diff.added is not None:
        added_files = tuple(translate_file(entry) for entry in diff.added.files)
        added_fmodels = _fmodels_with_nested(diff.added, added_files)

    return TranslatedDiff(
        project=project,
        changed_files=changed_files,
        changed_fmodels=changed_fmodels,
        removed_file_anchors=removed_file_anchors,
        removed_fmodel_anchors=removed_fmodel_anchors,
        added_files=added_files,
        added_fmodels=added_fmodels,
    )


def _fmodels_with_nested(
    bucket: DiffBucket, files: tuple[FilePatch, ...]
) -> tuple[FmodelPatch, ...]:
    top_level = tuple(translate_fmodel(entry) for entry in bucket.fmodels)
    nested = tuple(fmodel for file in files for fmodel in file.nested_fmodels())
    return top_level + nested


def _as_entry(value: object) -> Entry:
    if not isinstance(value, Mapping):
        raise MalformedEntryError(f"Diff entry must be a mapping, got {value!r}")
    return value  # pyright: ignore[reportUnknownVariableType]


def _optional_str(entry: Entry, name: str, anchor: str) -> Maybe[str | None]:
    value = optional_field(entry, name)
    if value is UNSET or value is None or isinstance(value, str):
        return value
    raise MalformedEntryError(f"Entry {anchor!r}: {name!r} must be a string, got {value!r}")


def _optional_int(entry: Entry, name: str, anchor: str) -> Maybe[int | None]:
    value = optional_field(entry, name)
    if value is UNSET or value is None:
        return value
    # bool is an int subclass but never a valid position
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise MalformedEntryError(f"Entry {anchor!r}: {name!r} must be an integer, got {value!r}")


def _optional_bool(entry: Entry, name: str, anchor: str) -> Maybe[bool | None]:
    value = optional_field(entry, name)
    if value is UNSET or value is None or isinstance(value, bool):
        return value
    raise MalformedEntryError(f"Entry {anchor!r}: {name!r} must be a boolean, got {value!r}")
