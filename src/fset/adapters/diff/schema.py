"""Pydantic models for the diff wire format and the exported document."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

type RawEntry = dict[str, Any]
type RawEntries = dict[str, RawEntry]


class DiffBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ChangedPayload(DiffBaseModel):
    project: RawEntry | None = None
    files: RawEntries | None = None
    fmodels: RawEntries | None = None


class RemovedPayload(DiffBaseModel):
    files: RawEntries | None = None
    fmodels: RawEntries | None = None


class AddedPayload(DiffBaseModel):
    files: RawEntries | None = None
    fmodels: RawEntries | None = None


class DiffPayload(DiffBaseModel):
    """One diff submission. Entry ids (the inner mapping keys) carry no meaning."""

    changed: ChangedPayload | None = None
    removed: RemovedPayload | None = None
    added: AddedPayload | None = None


class WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class WireFmodel(WireModel):
    anchor: str
    type: str | None = None
    key: str | None = None
    is_entry: bool = False
    sch: dict[str, Any] = Field(default_factory=dict)


class WireFile(WireModel):
    anchor: str
    key: str
    order: int
    fmodels: list[WireFmodel] = Field(default_factory=list["WireFmodel"])


class WireProject(WireModel):
    anchor: str
    key: str
    order: int
    files: list[WireFile] = Field(default_factory=list["WireFile"])
