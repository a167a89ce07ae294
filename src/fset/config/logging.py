"""Shared logging helpers for fset."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError


def get_log_level(default: int = logging.INFO) -> int:
    """Return the level named by ``FSET_LOG_LEVEL`` or ``default`` when unset."""

    raw = os.getenv("FSET_LOG_LEVEL")
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level in FSET_LOG_LEVEL: {raw}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    comes from ``FSET_LOG_LEVEL`` (INFO when unset) unless given explicitly, with a
    terse format suitable for CLI output. Pass ``force=True`` to reconfigure during
    tests or specialised entry points.
    """

    logging.basicConfig(
        level=get_log_level() if level is None else level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
