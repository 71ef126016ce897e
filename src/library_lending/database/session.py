"""
Database session management for the Library Lending MCP Server.

Every borrow/return runs inside one short-lived session, which is the unit of
work: the transaction row and the book and member counters are committed
together or rolled back together.

- Sessions are per-request in MCP handlers
- Context managers ensure cleanup
- Storage failures surface as ``RepositoryException`` subclasses
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .schema import Base

logger = logging.getLogger(__name__)


class RepositoryException(Exception):
    """Base exception for unexpected storage failures."""


class DuplicateError(RepositoryException):
    """Raised when attempting to create a duplicate entity."""


class ConcurrencyConflictError(RepositoryException):
    """Raised when a row changed between load and commit."""


def _engine_options(database_url: str) -> dict:
    if not database_url.startswith("sqlite"):
        return {"pool_size": 10, "max_overflow": 20, "pool_pre_ping": True}

    # Writers wait on the file lock instead of failing straight away
    options: dict = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


def _enable_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Owns the engine and hands out sessions.

    The engine is built on first use. Lending services take a bare session
    from ``create_session`` and commit through ``safe_commit``; read-only
    callers use ``session_scope``.
    """

    def __init__(self, database_url: str | None = None):
        self.database_url = database_url or get_config().get_database_url()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.database_url, **_engine_options(self.database_url))
            if self._engine.dialect.name == "sqlite":
                event.listen(self._engine, "connect", _enable_foreign_keys)
            logger.info("Database engine created: %s", self._engine.url)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            # Loaded rows stay readable after commit for response shaping
            self._session_factory = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
        return self._session_factory

    def create_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Session committed on success, rolled back on any exception, always closed."""
        session = self.create_session()
        try:
            yield session
            session.commit()
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """Create every table, optionally dropping the existing schema first."""
        if drop_existing:
            logger.warning("Dropping all existing tables")
            Base.metadata.drop_all(bind=self.engine)

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready (%d tables)", len(Base.metadata.tables))

    def verify_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False
        logger.info("Database connection verified")
        return True

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """Process-wide manager; ``database_url`` only matters on the first call."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)

    return _db_manager


def reset_db_manager() -> None:
    """Dispose of and forget the global manager (useful for testing)."""
    global _db_manager  # noqa: PLW0603

    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


def get_session() -> Session:
    """Bare session for callers that commit through ``safe_commit``."""
    return get_db_manager().create_session()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    with get_db_manager().session_scope() as session:
        yield session


def safe_commit(session: Session, operation: str) -> None:
    """
    Commit a session, rolling back on failure.

    Args:
        session: The database session
        operation: Description of the operation (for error messages)

    Raises:
        ConcurrencyConflictError: If a versioned row changed since it was loaded
        DuplicateError: If a unique constraint rejected the write
        RepositoryException: If the commit fails for any other reason
    """
    try:
        session.commit()
    except StaleDataError as e:
        session.rollback()
        raise ConcurrencyConflictError(f"Concurrent update during '{operation}'") from e
    except IntegrityError as e:
        session.rollback()
        raise DuplicateError(f"Constraint violated during '{operation}': {e.orig}") from e
    except SQLAlchemyError as e:
        session.rollback()
        raise RepositoryException(f"Database operation '{operation}' failed: {e!s}") from e


def safe_query[T](session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """Run ``query_func``, turning storage errors into ``RepositoryException``."""
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise RepositoryException(f"{error_msg}: Database query failed") from e
