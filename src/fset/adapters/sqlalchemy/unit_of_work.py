"""Session-per-transaction unit of work over the SQLAlchemy adapter.

``startup`` binds the adapter to one engine for the whole process. Every
``SqlAlchemyDocumentUnitOfWork`` then opens its own session on that engine and
exposes the document repositories for as long as the ``with`` block runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from fset.adapters.sqlalchemy.mappings import start_mappers
from fset.adapters.sqlalchemy.migrations import upgrade_head
from fset.adapters.sqlalchemy.repositories import (
    SqlAlchemyFileRepository,
    SqlAlchemyFmodelRepository,
    SqlAlchemyProjectRepository,
)
from fset.config import get_database_config
from fset.domain.ports import DocumentRepositories
from fset.domain.reconciliation.errors import ConflictViolationError

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """The adapter or a unit of work is used in the wrong lifecycle state."""


class _Binding:
    """The engine the adapter is bound to and its session factory."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError("SQLAlchemy adapter is not started; call startup() first")
        return self.sessions()


_binding = _Binding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or a new one) after migrating its schema.

    A second call raises ``StartupError`` unless ``force`` is set, in which case
    the previous binding is simply replaced.
    """

    if _binding.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already started; pass force=True to rebind")

    target = engine
    if target is None:
        target = create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    upgrade_head(engine=target)
    _binding.bind(target)
    log.debug("SQLAlchemy adapter bound to a %s engine", target.dialect.name)


def configured_engine() -> Engine | None:
    return _binding.engine


def is_started() -> bool:
    return _binding.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; safe to call when nothing is bound."""

    _binding.release()


class SqlAlchemyDocumentUnitOfWork:
    """One session and one transaction over projects, files and fmodels.

    Leaving the block with an exception rolls the transaction back; the
    session is closed either way. Nothing is committed implicitly.
    """

    def __init__(self) -> None:
        if _binding.sessions is None:
            raise StartupError("SQLAlchemy adapter is not started; call startup() first")
        self._session: Session | None = None
        self._repositories: DocumentRepositories | None = None

    def __enter__(self) -> SqlAlchemyDocumentUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = _binding.open_session()
        self._session = session
        self._repositories = DocumentRepositories(
            projects=SqlAlchemyProjectRepository(session),
            files=SqlAlchemyFileRepository(session),
            fmodels=SqlAlchemyFmodelRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> DocumentRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            # the session is unusable until rolled back
            self.session.rollback()
            raise ConflictViolationError(f"Commit rejected: {exc.orig}") from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from fset.domain.ports import DocumentUnitOfWork

    _uow_check: DocumentUnitOfWork = SqlAlchemyDocumentUnitOfWork()
