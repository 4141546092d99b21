# tests/conftest.py

"""
Pytest configuration and shared fixtures.

Each test gets its own file-backed SQLite database so that separate
sessions behave like separate connections.
"""
import uuid
from datetime import datetime, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from database import build_engine, build_session_factory, init_db
from main import create_app
from security import create_token
from services.invitation_workflow import InvitationWorkflow

TEST_JWT_SECRET = "test-secret"


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'access.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def workflow(db, clock) -> InvitationWorkflow:
    return InvitationWorkflow(db, clock=clock)


@pytest.fixture
def owner_id():
    return uuid.uuid4()


@pytest.fixture
def viewer_id():
    return uuid.uuid4()


@pytest.fixture
def stranger_id():
    return uuid.uuid4()


@pytest.fixture
def app(session_factory):
    """Create a test FastAPI application instance bound to the test database."""
    return create_app(session_factory, jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user_id, email=None) -> dict:
    return {"Authorization": f"Bearer {create_token(user_id, email=email, secret=TEST_JWT_SECRET)}"}
