"""
Test configuration and fixtures for SafeCheck.

- Function-scoped in-memory SQLite engine (fresh schema per test)
- Store wrapping the test session
- TestClient with database and AI service dependency overrides
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from safecheck.api.dependencies import get_claude_service
from safecheck.database import get_db
from safecheck.main import app
from safecheck.models import Base
from safecheck.services.store import AppStore
from tests.fixtures.mocks import MockClaudeService


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_engine():
    """
    In-memory SQLite engine shared across threads.

    StaticPool keeps the single connection alive so the TestClient's worker
    threads see the same database as the test body.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(test_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(bind=test_engine)
    session = TestingSessionLocal()

    yield session

    session.close()


@pytest.fixture
def store(db: Session) -> AppStore:
    return AppStore(db)


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_claude_service() -> MockClaudeService:
    """
    Mock Claude service for testing AI functionality.

    Returns a mock service that can be configured per test.
    """
    return MockClaudeService()


@pytest.fixture
def image_dir(tmp_path, monkeypatch):
    """Send uploaded images to a temporary directory."""
    from safecheck.api import analysis
    from safecheck.services.image_service import ImageService

    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(analysis, "image_service", ImageService(upload_dir=str(upload_dir)))
    return upload_dir


# =============================================================================
# TestClient Fixtures
# =============================================================================


@pytest.fixture
def client(
    db: Session, mock_claude_service: MockClaudeService, image_dir
) -> Generator[TestClient, None, None]:
    """
    TestClient with database and AI service dependency overrides.

    Not entered as a context manager, so the app's startup hook never touches
    the configured database.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close - managed by db fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_claude_service] = lambda: mock_claude_service

    yield TestClient(app)

    app.dependency_overrides.clear()


# =============================================================================
# pytest markers
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
