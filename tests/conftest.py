"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Any, Generator, Optional
from uuid import UUID

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from gamehub.core.config import Settings
from gamehub.db.schema import Base
from gamehub.plugins.registry import PluginRegistry, build_default_registry

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to keep tests independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url=DATABASE_URL)


@pytest.fixture
def registry(settings: Settings) -> PluginRegistry:
    return build_default_registry(settings)


class RecordingNotifier:
    """Keeps every delivery so tests can inspect what went out."""

    def __init__(self) -> None:
        self.direct: list[tuple[str, str, str, Optional[UUID]]] = []
        self.broadcasts: list[tuple[UUID, str, dict[str, Any]]] = []

    def send_notification(
        self, user_id: str, type: str, message: str, game_id: Optional[UUID] = None
    ) -> None:
        self.direct.append((user_id, type, message, game_id))

    def broadcast_to_game(self, game_id: UUID, event: str, payload: dict[str, Any]) -> None:
        self.broadcasts.append((game_id, event, payload))

    def events(self) -> list[str]:
        return [event for _, event, _ in self.broadcasts]

    def messages_for(self, user_id: str) -> list[tuple[str, str]]:
        return [(type, message) for user, type, message, _ in self.direct if user == user_id]


class FailingNotifier:
    """A channel that is down."""

    def send_notification(
        self, user_id: str, type: str, message: str, game_id: Optional[UUID] = None
    ) -> None:
        raise ConnectionError("notification channel unavailable")

    def broadcast_to_game(self, game_id: UUID, event: str, payload: dict[str, Any]) -> None:
        raise ConnectionError("notification channel unavailable")


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()
