"""Pytest configuration and fixtures.

Tests run against an in-memory SQLite database and a canned transit
provider served through ``httpx.MockTransport``; nothing leaves the process.
"""

import os

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["COMMUTE_MONITOR_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-with-at-least-32-chars")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from app import app
from core.base import Base
from core.config import settings
from core.containers import container
from core.database import SessionLocal, engine, init_db
from core.security import create_access_token
from src.transit_bc.user.infrastructure.models import UserModel

from tests.factories import FakeTransit, ResRobot


@pytest.fixture(autouse=True)
def database():
    """Fresh tables for every test."""
    init_db()
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def resrobot():
    return ResRobot


@pytest.fixture
def fake_transit():
    """Route the container's transit client to the canned provider."""
    fake = FakeTransit()
    container.transit_client.override(providers.Object(fake.client))
    yield fake
    container.transit_client.reset_override()


@pytest.fixture
def client(fake_transit):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_base_url():
    return "/api/v1"


@pytest.fixture
def make_auth_headers():
    def make(user_id: str = "user-1", **claims) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, **claims)}"}
    return make


@pytest.fixture
def auth_headers(make_auth_headers):
    return make_auth_headers("user-1", email="anna@example.se")


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": settings.ADMIN_TOKEN}


@pytest.fixture
def user(db):
    row = UserModel(id="user-1", email="anna@example.se", first_name="Anna")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
