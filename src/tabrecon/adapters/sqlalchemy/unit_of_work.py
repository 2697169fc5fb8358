"""Session lifecycle for datasets and reconciliation runs.

``startup()`` binds one process-wide engine (running migrations on the way);
each ``SqlAlchemyUnitOfWork`` then opens a session for the duration of a
``with`` block and exposes the repositories built on it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tabrecon.adapters.sqlalchemy.mappings import start_mappers
from tabrecon.adapters.sqlalchemy.migrations import upgrade_head
from tabrecon.adapters.sqlalchemy.repositories import (
    SqlAlchemyDatasetRepository,
    SqlAlchemyReconciliationRepository,
)
from tabrecon.config import get_database_config
from tabrecon.domain.ports.unit_of_work import ReconciliationRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the database is used before ``startup()`` or a session is misused."""


class _Database:
    __slots__ = ("engine", "sessions")

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


_DATABASE = _Database()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the engine used by every unit of work and bring its schema to head.

    Without ``engine`` one is created from ``database_uri`` or the configured
    database. A second call raises ``StartupError`` unless ``force`` is set.
    """

    if _DATABASE.engine is not None and not force:
        raise StartupError("Database already started; pass force=True to rebind it")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri)
    start_mappers()
    upgrade_head(engine=engine)
    _DATABASE.bind(engine)
    log.debug("Database ready at %s", engine.url)


def is_started() -> bool:
    return _DATABASE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; ``startup()`` may be called again afterwards."""

    _DATABASE.release()


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; an exception inside the block rolls it back."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        if session_factory is None:
            session_factory = _DATABASE.sessions
        if session_factory is None:
            raise StartupError(
                "Database not started; call startup() before opening a unit of work"
            )
        self._session_factory = session_factory
        self._session: Session | None = None
        self._repositories: ReconciliationRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._session_factory()
        self._repositories = ReconciliationRepositories(
            datasets=SqlAlchemyDatasetRepository(self._session),
            reconciliations=SqlAlchemyReconciliationRepository(self._session),
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
    def repositories(self) -> ReconciliationRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from tabrecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

    _uow_check: ReconciliationUnitOfWork = SqlAlchemyUnitOfWork()
