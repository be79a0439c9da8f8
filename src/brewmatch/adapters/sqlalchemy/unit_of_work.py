"""SQLAlchemy-backed unit of work for the catalog."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from brewmatch.adapters.sqlalchemy.mappings import create_all_tables
from brewmatch.adapters.sqlalchemy.repositories import SqlAlchemyCatalogRepository
from brewmatch.config.storage import get_database_config
from brewmatch.domain.disambiguation import UpstreamUnavailable
from brewmatch.domain.ports import CatalogRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the catalog store is used before ``startup()`` or after ``shutdown()``."""


class _CatalogStore:
    """Engine and session factory shared by every unit of work in the process."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.sessions: sessionmaker[Session] | None = None

    def open(self, engine: Engine) -> None:
        create_all_tables(engine)
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def new_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Catalog store not initialised; call "
                "brewmatch.adapters.sqlalchemy.startup() first."
            )
        return self.sessions()


_STATE = _CatalogStore()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create the engine (unless one is given), ensure the schema and remember both."""

    if _STATE.engine is not None and not force:
        raise StartupError("Catalog store already initialised. Pass force=True to reconfigure.")
    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo)
    if _STATE.engine is not engine:
        _STATE.close()
    _STATE.open(engine)
    log.debug("Catalog store ready at %s", engine.url.render_as_string(hide_password=True))


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    _STATE.close()


class SqlAlchemyCatalogUnitOfWork:
    """One database transaction around the catalog repository.

    Leaving the ``with`` block without ``commit()`` discards the work; leaving it
    through an exception rolls back explicitly before the session is closed.
    """

    def __init__(self) -> None:
        if _STATE.sessions is None:
            raise StartupError(
                "Catalog store not initialised; call "
                "brewmatch.adapters.sqlalchemy.startup() first."
            )
        self._session: Session | None = None
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> SqlAlchemyCatalogUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        self._session = _STATE.new_session()
        self._repositories = CatalogRepositories(
            catalog=SqlAlchemyCatalogRepository(self._session)
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

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise UpstreamUnavailable(f"Catalog commit failed: {exc}", service="catalog") from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._session

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._repositories


if TYPE_CHECKING:
    from brewmatch.domain.ports import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = SqlAlchemyCatalogUnitOfWork()
