"""Shared test fixtures."""

import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.event_bus import EventBus
from src.db.database import get_db
from src.db.models import Base
from src.main import app, wire_services
from src.services.ai.mock import MockProvider


@pytest.fixture()
def db_session() -> Session:
    """Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so the TestClient thread and the
    test body see the same tables.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture()
def client(db_session: Session, mock_provider: MockProvider) -> TestClient:
    """TestClient with every service wired on the test session.

    The lifespan is not entered (no context manager), so nothing touches
    the on-disk database.
    """
    wire_services(app, db_session, ai_provider=mock_provider, rng=random.Random(7))

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
