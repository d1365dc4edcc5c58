"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
import itertools
import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of skillswap.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite has no JSONB; render it as TEXT and let SQLAlchemy's JSON
# serializer handle the values.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from skillswap.config import SkillSwapConfig  # noqa: E402
from skillswap.database.models import Base, User  # noqa: E402
from skillswap.engine.records import Skill  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


def make_skill(name: str, category: str = "General", level: str = "intermediate") -> Skill:
    return Skill(name=name, category=category, level=level)


class RecordingHub:
    """Stands in for LiveQueryHub where only the publish calls matter."""

    def __init__(self) -> None:
        self.published: list[str] = []

    def publish(self, *collections: str) -> None:
        self.published.extend(collections)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all SkillSwap tables.

    StaticPool keeps one shared connection so worker threads started by
    ``run_db`` and the TestClient see the same database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def test_config() -> SkillSwapConfig:
    return SkillSwapConfig(app_name="SkillSwap Test", api_port=8000, search_page_size=20)


@pytest.fixture
def recording_hub() -> RecordingHub:
    return RecordingHub()


@pytest.fixture
def make_user(db_engine):
    """Factory: register a member and optionally fill in their profile.

    ``offered`` / ``wanted`` take skill names, ``(name, category, level)``
    tuples or :class:`Skill` objects.
    """
    from skillswap.services import user_service

    counter = itertools.count(1)

    def _as_skill(item) -> Skill:
        if isinstance(item, Skill):
            return item
        if isinstance(item, tuple):
            return make_skill(*item)
        return make_skill(item)

    def _make(
        name: str | None = None,
        *,
        email: str | None = None,
        password: str = "password123",
        role: str = "user",
        offered=(),
        wanted=(),
        **profile,
    ) -> User:
        n = next(counter)
        user = user_service.register_user(
            db_engine,
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            password=password,
            role=role,
        )
        if offered:
            profile["skills_offered"] = [_as_skill(s) for s in offered]
        if wanted:
            profile["skills_wanted"] = [_as_skill(s) for s in wanted]
        if profile:
            user = user_service.update_profile(db_engine, user.id, **profile)
        return user

    return _make


@pytest.fixture
def set_user_fields(db_engine):
    """Write columns directly, bypassing the service allow-list."""

    def _set(user_id: str, **fields) -> None:
        with Session(db_engine) as session:
            user = session.get(User, user_id)
            for key, value in fields.items():
                setattr(user, key, value)
            session.commit()

    return _set


def make_token(user: User) -> str:
    from skillswap.api.deps import issue_token

    return issue_token(user)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def app(db_engine, test_config):
    """The FastAPI app wired to the test database and a fresh hub."""
    from skillswap.api.deps import get_config, get_engine, get_hub
    from skillswap.api.main import app as fastapi_app
    from skillswap.engine.live import LiveQueryHub

    hub = LiveQueryHub()
    fastapi_app.dependency_overrides[get_engine] = lambda: db_engine
    fastapi_app.dependency_overrides[get_config] = lambda: test_config
    fastapi_app.dependency_overrides[get_hub] = lambda: hub
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """FastAPI TestClient with raise_server_exceptions=False."""
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)
