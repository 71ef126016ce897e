"""Test configuration and fixtures for the Library Lending MCP Server.

1. Isolated test databases - each test gets its own SQLite file
2. Configuration isolation - LIBRARY_LENDING_* variables are cleared
3. A controllable clock so due dates and fines are deterministic
4. A recording event publisher to assert on committed events
"""

import os
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import logfire
import pytest
from sqlalchemy.orm import Session

from library_lending.config import reset_config
from library_lending.database.session import DatabaseManager, get_db_manager, reset_db_manager
from library_lending.errors import LendingError
from library_lending.events import DomainEvent, reset_event_publisher
from library_lending.models.book import BookCreate
from library_lending.models.member import MemberRegister
from library_lending.rules import MembershipTypeEnum
from library_lending.services.catalog import CatalogService
from library_lending.services.lending import LendingService
from library_lending.services.registry import RegistryService


def pytest_configure(config):
    """Keep logfire local and quiet during tests."""
    logfire.configure(send_to_logfire=False, console=False)
    config.addinivalue_line("markers", "mcp_tools: tests exercising MCP tool handlers")


# === Test Doubles ===


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingPublisher:
    """Event publisher that keeps everything it is given."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [event for event in self.events if isinstance(event, event_type)]


# === Environment & Configuration ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_library.db"


@pytest.fixture
def test_database_url(test_db_path: Path) -> str:
    return f"sqlite:///{test_db_path}"


@pytest.fixture(autouse=True)
def isolated_config(test_db_path: Path, monkeypatch) -> Generator[None, None, None]:
    """Start every test without LIBRARY_LENDING_* variables or cached singletons."""
    for key in list(os.environ):
        if key.startswith("LIBRARY_LENDING_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("LIBRARY_LENDING_DATABASE_PATH", str(test_db_path))

    reset_config()
    reset_event_publisher()
    yield
    reset_db_manager()
    reset_event_publisher()
    reset_config()


# === Database ===


@pytest.fixture
def db_manager(test_database_url: str) -> Generator[DatabaseManager, None, None]:
    """Global database manager on a fresh file, as used by tools and resources."""
    reset_db_manager()
    manager = get_db_manager(test_database_url)
    manager.init_database()
    yield manager
    reset_db_manager()


@pytest.fixture
def db_session(db_manager: DatabaseManager) -> Generator[Session, None, None]:
    session = db_manager.create_session()
    try:
        yield session
    finally:
        session.close()


# === Core Collaborators ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def catalog(db_session, clock) -> CatalogService:
    return CatalogService(db_session, clock=clock)


@pytest.fixture
def registry(db_session, publisher, clock) -> RegistryService:
    return RegistryService(db_session, publisher, clock)


@pytest.fixture
def lending(db_session, publisher, clock) -> LendingService:
    return LendingService(db_session, publisher, clock)


# === Data Builders ===


_ISBNS = iter(f"978{n:010d}" for n in range(1000, 100000))


@pytest.fixture
def make_book(catalog):
    """Create a book through the catalog; keyword overrides for any field."""

    def _make(**overrides):
        data = {
            "isbn": next(_ISBNS),
            "title": "The Pragmatic Programmer",
            "author": "Andrew Hunt",
            "publisher": "Addison-Wesley",
            "publication_year": 1999,
            "genre": "Technology",
            "total_copies": 2,
        }
        data.update(overrides)
        book = catalog.create_book(BookCreate(**data))
        assert not isinstance(book, LendingError)
        return book

    return _make


@pytest.fixture
def make_member(registry):
    """Register a member; keyword overrides for any field."""
    counter = iter(range(1, 10000))

    def _make(**overrides):
        n = next(counter)
        data = {
            "first_name": "Amina",
            "last_name": f"Reader{n}",
            "email": f"reader{n}@readers.org",
            "phone": "+212612345678",
            "address": "12 Rue Atlas, Rabat",
            "membership_type": MembershipTypeEnum.ADULT,
        }
        data.update(overrides)
        return registry.register_member(MemberRegister(**data))

    return _make
