"""Alembic environment for fset.

Migrations run on the connection handed over by ``upgrade_head(engine=...)``
when there is one, otherwise on a short-lived engine for ``sqlalchemy.url`` or
the configured database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from alembic import context
from sqlalchemy import create_engine, pool

from fset.adapters.sqlalchemy import mapper_registry, start_mappers
from fset.config import configure_logging, get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config
configure_logging()
start_mappers()

_CONTEXT_OPTIONS: dict[str, Any] = {
    "target_metadata": mapper_registry.metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _run(connection: Connection) -> None:
    context.configure(connection=connection, **_CONTEXT_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    context.configure(url=_database_url(), literal_binds=True, **_CONTEXT_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    shared = config.attributes.get("connection")
    if shared is not None:
        _run(shared)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _run(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
