"""Run the packaged Alembic migrations against the configured database."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from fset.config import get_database_config

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent
PYPROJECT_PATH: Final[Path] = Path(__file__).resolve().parents[5] / "pyproject.toml"


def _alembic_options(path: Path = PYPROJECT_PATH) -> dict[str, str]:
    """The ``[tool.alembic]`` table of pyproject.toml; empty when there is none."""

    if not path.is_file():
        return {}
    with path.open("rb") as handle:
        table = tomllib.load(handle).get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in table.items()}


def _script_location(options: Mapping[str, str]) -> Path:
    configured = options.get("script_location")
    if configured is None:
        return MIGRATIONS_PATH
    location = Path(configured)
    if not location.is_absolute():
        location = PYPROJECT_PATH.parent / location
    # installed wheels carry the migrations but no source tree
    return location if location.exists() else MIGRATIONS_PATH


def _build_config(*, database_uri: str | None = None) -> Config:
    options = _alembic_options()
    config = Config()
    for key, value in options.items():
        if key not in {"script_location", "sqlalchemy.url"}:
            config.set_main_option(key, value)
    config.set_main_option("script_location", str(_script_location(options)))
    url = database_uri or options.get("sqlalchemy.url")
    if url is not None:
        # ConfigParser interpolation
        config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the schema to the latest revision.

    With ``engine`` the migrations run on one of its connections, which keeps
    in-memory SQLite databases intact; otherwise on ``database_uri`` or the
    configured database.
    """

    if engine is None:
        config = _build_config(database_uri=database_uri or get_database_config().uri)
        command.upgrade(config, "head")
        return
    config = _build_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
