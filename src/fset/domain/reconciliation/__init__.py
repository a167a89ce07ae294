"""Diff reconciliation for project documents.

Layered flow:
1) translate diff entries into typed patches (``translate``)
2) pick conflict targets and replaced columns (``policy``)
3) bind fmodels to known parent files (``guard``)
4) run update, delete and insert phases in one unit of work (``engine``)
"""

from __future__ import annotations

from .contracts import DiffCommitted, DiffOutcome, DiffRejected, DiffSummary, RejectionReason
from .diff import Diff, DiffBucket
from .engine import ReconciliationEngine
from .errors import ConflictViolationError, MalformedEntryError, ReconciliationError
from .patches import FilePatch, FmodelPatch, ProjectPatch

__all__ = [
    "ConflictViolationError",
    "Diff",
    "DiffBucket",
    "DiffCommitted",
    "DiffOutcome",
    "DiffRejected",
    "DiffSummary",
    "FilePatch",
    "FmodelPatch",
    "MalformedEntryError",
    "ProjectPatch",
    "ReconciliationEngine",
    "ReconciliationError",
    "RejectionReason",
]
