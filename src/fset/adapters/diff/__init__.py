"""Diff wire-format adapter."""

from __future__ import annotations

from .schema import DiffPayload, WireFile, WireFmodel, WireProject
from .translator import load_diff, project_to_wire, translate_payload

__all__ = [
    "DiffPayload",
    "WireFile",
    "WireFmodel",
    "WireProject",
    "load_diff",
    "project_to_wire",
    "translate_payload",
]
