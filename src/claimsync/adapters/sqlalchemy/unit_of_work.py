"""Engine lifecycle and the session-per-block unit of work."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, Literal

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from claimsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from claimsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyClaimRepository,
    SqlAlchemyEvidenceRepository,
    SqlAlchemyLockRepository,
    SqlAlchemyRecordRepository,
    SqlAlchemySubjectRepository,
    storage_errors,
)
from claimsync.config.storage import get_database_uri
from claimsync.domain.ports import IngestRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)

# Seconds a SQLite connection waits on a locked database file before failing.
SQLITE_BUSY_TIMEOUT: Final[float] = 15.0


class StartupError(RuntimeError):
    """Raised when a unit of work is requested before ``startup()``."""


@dataclass(slots=True)
class _Binding:
    engine: Engine
    session_factory: sessionmaker[Session]


_binding: _Binding | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the adapter to an engine and create any missing tables.

    Table creation checks the live schema first, so this is safe on every process
    start. Calling it again for an already started adapter is a no-op unless
    ``force`` rebinds it.
    """

    global _binding  # noqa: PLW0603
    if _binding is not None and not force:
        return _binding.engine

    with storage_errors("Connecting"):
        resolved_engine = engine or _create_engine(database_uri or get_database_uri())
    start_mappers()
    with storage_errors("Creating tables"):
        create_all_tables(resolved_engine)

    _binding = _Binding(
        engine=resolved_engine,
        session_factory=sessionmaker(bind=resolved_engine, expire_on_commit=False),
    )
    log.debug("Storage bound to %s", resolved_engine.url.render_as_string(hide_password=True))
    return resolved_engine


def _create_engine(uri: str) -> Engine:
    connect_args: dict[str, Any] = {}
    if make_url(uri).get_backend_name() == "sqlite":
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    return create_engine(uri, connect_args=connect_args)


def configured_engine() -> Engine | None:
    return None if _binding is None else _binding.engine


def is_started() -> bool:
    return _binding is not None


def shutdown() -> None:
    """Dispose the bound engine; the next unit of work needs ``startup()`` again."""

    global _binding  # noqa: PLW0603
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block; closing it discards anything uncommitted."""

    def __init__(self) -> None:
        if _binding is None:
            raise StartupError(
                "Storage is not started; call claimsync.adapters.sqlalchemy.startup() first"
            )
        self._session_factory = _binding.session_factory
        self._session: Session | None = None
        self._repositories: IngestRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._session_factory()
        self._session = session
        self._repositories = IngestRepositories(
            locks=SqlAlchemyLockRepository(session),
            records=SqlAlchemyRecordRepository(session),
            subjects=SqlAlchemySubjectRepository(session),
            claims=SqlAlchemyClaimRepository(session),
            evidence=SqlAlchemyEvidenceRepository(session),
        )
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
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        with storage_errors("Commit"):
            self.session.commit()

    def rollback(self) -> None:
        with storage_errors("Rollback"):
            self.session.rollback()

    @property
    def repositories(self) -> IngestRepositories:
        if self._repositories is None:
            raise StartupError("Repositories are only available inside a `with` block")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session


if TYPE_CHECKING:
    from claimsync.domain.ports import IngestUnitOfWork

    _uow_check: IngestUnitOfWork = SqlAlchemyUnitOfWork()
