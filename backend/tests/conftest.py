"""Pytest configuration for backend tests."""
import copy
import os
import sys
from pathlib import Path

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from bookblend.database import Base, get_db
from bookblend.core.errors import UpstreamUnavailable
from bookblend.core.identifiers import UsernameId
from bookblend.main import app
from bookblend.services.bookblend_client import get_bookblend_client

# Import the entire models module to ensure all models are registered with Base.metadata
import bookblend.models  # noqa: F401


BEN = {
    "name": "Ben Wallace",
    "image_url": "https://images.gr-assets.com/users/1584022699p5/42944663.jpg",
    "id": "42944663",
    "profile_url": "https://www.goodreads.com/user/show/42944663",
    "book_count": "142",
    "username": "bewal416",
}

CLAYTON = {
    "name": "Clayton Marshall",
    "image_url": "https://images.gr-assets.com/users/1679267847p2/93322377.jpg",
    "id": "93322377",
    "profile_url": "https://www.goodreads.com/user/show/93322377-clayton-marshall",
    "book_count": "27",
}


class FakeBookBlendClient:
    """Stands in for the upstream BookBlend API."""

    def __init__(self):
        self.users = {}
        self.usernames = {}
        self.blend_payload = {"blend": {"score": 85.7}, "users": {}, "common_books": []}
        self.user_error = None
        self.blend_error = None
        self.user_calls = []
        self.blend_calls = []

    def add_user(self, user: dict, friends=None):
        self.users[user["id"]] = {"user": dict(user), "friends": list(friends or [])}
        if user.get("username"):
            self.usernames[user["username"]] = user["id"]

    def get_user(self, user_id):
        self.user_calls.append(user_id)
        if self.user_error is not None:
            raise self.user_error
        key = self.usernames.get(user_id.handle) if isinstance(user_id, UsernameId) else str(user_id)
        if key not in self.users:
            raise UpstreamUnavailable("We couldn't find that Goodreads profile.", status_code=404, detail="not found")
        return copy.deepcopy(self.users[key])

    def get_blend(self, user_id1, user_id2):
        self.blend_calls.append((user_id1, user_id2))
        if self.blend_error is not None:
            raise self.blend_error
        return copy.deepcopy(self.blend_payload)


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps one connection so the schema survives across sessions
    and the TestClient worker thread.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Database session for each test."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def fake_upstream() -> FakeBookBlendClient:
    upstream = FakeBookBlendClient()
    upstream.add_user(BEN, friends=[CLAYTON])
    upstream.add_user(CLAYTON, friends=[BEN])
    return upstream


@pytest.fixture
def client(db: Session, fake_upstream: FakeBookBlendClient) -> TestClient:
    """TestClient wired to the test session and the fake upstream."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_bookblend_client] = lambda: fake_upstream
    yield TestClient(app)
    app.dependency_overrides.clear()
