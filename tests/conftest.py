"""Pytest configuration shared across the API tests."""

import os

# Settings are read at import time; pin them before anything under app/ loads.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["LLM_MODEL"] = "test/fake-model"
os.environ["LLM_API_KEY"] = ""
# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.security import create_access_token
from app.main import app
from app.models.user import User


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def make_user(db, email: str) -> User:
    user = User(email=email, name=email.split("@")[0])
    db.add(user)
    db.commit()
    return user


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def user(db):
    return make_user(db, "alice@example.com")


@pytest.fixture
def other_user(db):
    return make_user(db, "bob@example.com")


@pytest.fixture
def headers(user):
    return bearer(user)


@pytest.fixture
def other_headers(other_user):
    return bearer(other_user)


def iso(dt: datetime) -> str:
    return dt.isoformat()


@pytest.fixture
def saturday():
    """09:00 on a fixed Saturday, UTC"""
    return datetime(2025, 11, 15, 9, 0, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
