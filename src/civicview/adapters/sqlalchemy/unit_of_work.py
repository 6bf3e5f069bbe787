"""SQLAlchemy engines, units of work and snapshot storage for civicview.

Store handles are created once by :func:`startup` and passed explicitly to the
components that need them; nothing here is a process-wide singleton.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import Session, sessionmaker

from civicview.adapters.sqlalchemy.accessors import (
    SqlAlchemyDetectionAccessor,
    SqlAlchemyFlagAccessor,
    SqlAlchemyReportAccessor,
    SqlAlchemyReporterAccessor,
)
from civicview.adapters.sqlalchemy.errors import SourceSchemaError, StartupError
from civicview.adapters.sqlalchemy.migrations import upgrade_head
from civicview.adapters.sqlalchemy.snapshot_store import SqlAlchemySnapshotStore
from civicview.adapters.sqlalchemy.tables import SOURCE_COLLECTIONS
from civicview.domain.ports.unit_of_work import RepositoryCollection, SourceAccessors

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from civicview.config import StorageConfig

log = logging.getLogger(__name__)


def verify_source_schema(engine: Engine) -> None:
    """Fail loudly when a source collection the join reads is not where we expect it."""

    existing = set(inspect(engine).get_table_names())
    missing = [name for name in SOURCE_COLLECTIONS if name not in existing]
    if missing:
        raise SourceSchemaError(missing)


@dataclass(slots=True)
class SqlAlchemyStores:
    """Engine handles for the operational (source) and materialized (target) stores."""

    source_engine: Engine
    target_engine: Engine
    _source_sessions: sessionmaker[Session] | None = field(default=None, repr=False)
    _target_sessions: sessionmaker[Session] | None = field(default=None, repr=False)

    @property
    def source_session_factory(self) -> sessionmaker[Session]:
        if self._source_sessions is None:
            self._source_sessions = sessionmaker(bind=self.source_engine, expire_on_commit=False)
        return self._source_sessions

    @property
    def target_session_factory(self) -> sessionmaker[Session]:
        if self._target_sessions is None:
            self._target_sessions = sessionmaker(bind=self.target_engine, expire_on_commit=False)
        return self._target_sessions

    def source_unit_of_work(self) -> SqlAlchemySourceUnitOfWork:
        return SqlAlchemySourceUnitOfWork(self.source_session_factory)

    def snapshot_store(self) -> SqlAlchemySnapshotStore:
        return SqlAlchemySnapshotStore(self.target_session_factory)

    def dispose(self) -> None:
        self.source_engine.dispose()
        if self.target_engine is not self.source_engine:
            self.target_engine.dispose()


def startup(
    *,
    config: StorageConfig | None = None,
    source_engine: Engine | None = None,
    target_engine: Engine | None = None,
    check_source: bool = True,
) -> SqlAlchemyStores:
    """Create (or adopt) the engines, check the source schema and migrate the target store."""

    if source_engine is None or target_engine is None:
        if config is None:
            raise StartupError("Pass a StorageConfig or both engines to start the stores")
        source_engine = source_engine or create_engine(config.source_database_uri(), future=True)
        target_engine = target_engine or create_engine(config.target_database_uri(), future=True)

    if check_source:
        verify_source_schema(source_engine)
    upgrade_head(engine=target_engine)
    log.info("Stores ready: source=%s, target=%s", source_engine.url, target_engine.url)
    return SqlAlchemyStores(source_engine=source_engine, target_engine=target_engine)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
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
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

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


class SqlAlchemySourceUnitOfWork(BaseSqlAlchemyUnitOfWork[SourceAccessors]):
    """Read-only unit of work over the operational collections."""

    def _build_repositories(self, session: Session) -> SourceAccessors:
        return SourceAccessors(
            reporters=SqlAlchemyReporterAccessor(session),
            reports=SqlAlchemyReportAccessor(session),
            flags=SqlAlchemyFlagAccessor(session),
            detections=SqlAlchemyDetectionAccessor(session),
        )


if TYPE_CHECKING:
    from typing import cast

    from civicview.domain.ports import SourceUnitOfWork

    _uow_check: SourceUnitOfWork = SqlAlchemySourceUnitOfWork(
        cast("sessionmaker[Session]", object())
    )
