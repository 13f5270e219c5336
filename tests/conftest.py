"""Pytest configuration and fixtures."""
import os

import pytest

# The app module builds itself on import and refuses to start without a database URL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./feedback.db")
os.environ.setdefault("DEBUG", "true")

from feedback_api.database import Database  # noqa: E402
from feedback_api.services.feedback_service import FeedbackService  # noqa: E402


@pytest.fixture
def database_url(tmp_path):
    """A fresh SQLite file per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'feedback.db'}"


@pytest.fixture
def database(database_url):
    return Database(database_url)


@pytest.fixture
def service(database):
    return FeedbackService(database)


@pytest.fixture
def client(database):
    """Test client whose feedback routes use the per-test database."""
    from fastapi.testclient import TestClient
    from feedback_api.main import app
    from feedback_api.api.v1.endpoints.feedback import get_feedback_service

    app.dependency_overrides[get_feedback_service] = lambda: FeedbackService(database)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client(tmp_path):
    """Test client whose store cannot be opened."""
    from fastapi.testclient import TestClient
    from feedback_api.main import app
    from feedback_api.api.v1.endpoints.feedback import get_feedback_service

    missing = tmp_path / "missing" / "dir" / "feedback.db"
    broken = Database(f"sqlite+aiosqlite:///{missing}")
    app.dependency_overrides[get_feedback_service] = lambda: FeedbackService(broken)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
