"""Errors raised while translating or persisting a diff."""

from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for failures that abort a diff application."""


class MalformedEntryError(ReconciliationError, ValueError):
    """Raised when a diff entry or the diff itself cannot be translated."""


class ConflictViolationError(ReconciliationError):
    """Raised when the store rejects a write with a unique or foreign-key violation."""
