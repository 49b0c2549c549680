"""
Shared fixtures for the EonChat test suite.

The database is a throwaway SQLite file. Its URL has to be in the environment
before any eonchat module is imported, because settings and the engine are
created at import time.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path

_DB_DIR = Path(tempfile.mkdtemp(prefix="eonchat-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BREVO_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import eonchat.models  # noqa: E402,F401
from eonchat.core import auth  # noqa: E402
from eonchat.core.websocket import manager  # noqa: E402
from eonchat.db.session import Base, SessionLocal, engine  # noqa: E402
from eonchat.models.user import User  # noqa: E402
from eonchat.services import bot  # noqa: E402

# Minimum bcrypt cost keeps password hashing out of the test runtime
auth.pwd_context.update(bcrypt__rounds=4)

DEFAULT_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_state():
    """Fresh tables, an empty socket registry and no cached bot engines per test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    manager.connections.clear()
    manager.rooms.clear()
    bot._engines.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Factory creating a user row; ``friends`` may hold User objects or ids."""

    def _make_user(username: str, email: str | None = None, friends=(), created_at: datetime | None = None) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=auth.get_password_hash(DEFAULT_PASSWORD),
            friends=[str(getattr(f, "id", f)) for f in friends],
        )
        if created_at is not None:
            user.created_at = created_at
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def befriend(db):
    """Mirror a friendship on both users."""

    def _befriend(a: User, b: User) -> None:
        a.add_friend(b.id)
        b.add_friend(a.id)
        db.commit()

    return _befriend


def auth_headers(user: User) -> dict[str, str]:
    token = auth.create_access_token({"sub": str(user.id), "username": user.username})
    return {"Authorization": f"Bearer {token}"}
