"""
Base building blocks:
identity, anchor and timestamp providers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def new_anchor() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    """Current UTC time at second precision, the resolution rows are stamped with."""
    return datetime.now(UTC).replace(microsecond=0)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists immediately in the domain."""

    id: UUID = field(default_factory=new_id)
