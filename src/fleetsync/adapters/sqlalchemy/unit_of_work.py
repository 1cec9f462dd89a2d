"""SQLAlchemy-backed unit of work for the sync, retention and rumor jobs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fleetsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from fleetsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyLockRepository,
    SqlAlchemyNewsRepository,
    SqlAlchemyPreferenceRepository,
    SqlAlchemyProgressRepository,
    SqlAlchemyProviderCacheRepository,
    SqlAlchemyRumorRepository,
    SqlAlchemyShipRepository,
)
from fleetsync.config.storage import get_database_config
from fleetsync.domain.errors import StoreError
from fleetsync.domain.ports import FleetRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call fleetsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    try:
        create_all_tables(resolved_engine)
    except SQLAlchemyError as exc:
        raise StoreError(f"Could not prepare the database schema: {exc}") from exc

    _STATE.engine = resolved_engine
    log.info(f"SQLAlchemy adapter started on {resolved_engine.url.render_as_string()}")


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Store failures surface as ``StoreError`` whether they happen in the body, on
    commit, or while rolling back.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        if isinstance(exc_value, SQLAlchemyError):
            raise StoreError(str(exc_value)) from exc_value
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            raise StoreError(f"Rollback failed: {exc}") from exc

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyFleetUnitOfWork(BaseSqlAlchemyUnitOfWork[FleetRepositories]):
    """Unit of work exposing every fleetsync repository over one session."""

    def _build_repositories(self, session: Session) -> FleetRepositories:
        return FleetRepositories(
            ships=SqlAlchemyShipRepository(session),
            preferences=SqlAlchemyPreferenceRepository(session),
            cache=SqlAlchemyProviderCacheRepository(session),
            locks=SqlAlchemyLockRepository(session),
            progress=SqlAlchemyProgressRepository(session),
            rumors=SqlAlchemyRumorRepository(session),
            news=SqlAlchemyNewsRepository(session),
            audit=SqlAlchemyAuditLogRepository(session),
        )


if TYPE_CHECKING:
    from fleetsync.domain.ports import FleetUnitOfWork

    _uow_check: FleetUnitOfWork = SqlAlchemyFleetUnitOfWork()
