"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of onlytalk.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from onlytalk.config import OnlyTalkConfig  # noqa: E402
from onlytalk.database.models import Base, Comment, Post, User  # noqa: E402
from onlytalk.database.seed import seed_defaults  # noqa: E402
from onlytalk.services.user_service import register_user  # noqa: E402

TEST_CONFIG = OnlyTalkConfig(
    site_name="OnlyTalk Test",
    site_motto="testing",
    api_port=8000,
)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all OnlyTalk tables and seeds.

    Uses StaticPool so every session (and the TestClient's worker threads)
    shares the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    seed_defaults(engine)
    return engine


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_user(engine: Engine, username: str, *, points: int | None = None) -> int:
    """Register a user and optionally force their balance; returns the id."""
    user = register_user(
        engine, username=username, email=f"{username}@example.com", password="secret123",
    )
    if points is not None:
        with Session(engine) as session:
            session.get(User, user.id).points = points
            session.commit()
    return user.id


def make_post(engine: Engine, author_id: int, title: str = "Hello") -> int:
    """Insert a post directly (no creation bonus); returns the id."""
    with Session(engine) as session:
        post = Post(title=title, content=f"{title} body", author_id=author_id)
        session.add(post)
        session.commit()
        return post.id


def make_comment(engine: Engine, author_id: int, post_id: int, content: str = "Nice") -> int:
    """Insert a comment directly (no creation bonus); returns the id."""
    with Session(engine) as session:
        comment = Comment(content=content, post_id=post_id, author_id=author_id)
        session.add(comment)
        session.commit()
        return comment.id


def user_row(engine: Engine, user_id: int) -> User:
    with Session(engine, expire_on_commit=False) as session:
        return session.get(User, user_id)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine: Engine):
    """FastAPI TestClient bound to the in-memory engine."""
    from fastapi.testclient import TestClient

    from onlytalk.api.deps import get_config, get_engine
    from onlytalk.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: TEST_CONFIG
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def make_token(user_id: int, username: str = "tester", role: str = "user") -> str:
    from onlytalk.api.deps import create_access_token

    return create_access_token(user_id, username, role, ttl_hours=1)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
