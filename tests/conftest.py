"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# mira.api.deps validates JWT_SECRET at import time.
_TEST_JWT_SECRET = "mira-pytest-secret-" + "x" * 40
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import BigInteger, Engine, create_engine  # noqa: E402
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mira.config import MiraConfig  # noqa: E402
from mira.database.models import Base  # noqa: E402

GUILD_ID = 424242
ADMIN_ROLE_ID = 777


# ---------------------------------------------------------------------------
# SQLite stands in for PostgreSQL: JSONB renders as TEXT, and BigInteger as
# INTEGER so autoincrement primary keys still work.
# ---------------------------------------------------------------------------
@compiles(PG_JSONB, "sqlite")
def _compile_jsonb_as_text(type_, compiler, **kw):
    return "TEXT"


@compiles(BigInteger, "sqlite")
def _compile_bigint_as_integer(type_, compiler, **kw):
    return "INTEGER"


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with every Mira table.

    StaticPool shares the one connection with worker threads
    (``asyncio.to_thread`` in ``run_db`` and the rate limiter).
    """
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
def test_config() -> MiraConfig:
    return MiraConfig(bot_name="Mira", guild_id=GUILD_ID, dashboard_port=8000, admin_role_id=ADMIN_ROLE_ID)


def make_admin_token(sub: str = "99999", username: str = "FixtureAdmin", *, is_admin: bool = True) -> str:
    """Create a dashboard JWT.  Usable as both a fixture and a factory function."""
    import jwt

    from mira.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username, "is_admin": is_admin},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def admin_token():
    return make_admin_token()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client():
    """TestClient against the real dependencies (no DB needed for auth guards)."""
    from fastapi.testclient import TestClient

    from mira.api.main import app

    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def api_client(db_engine, test_config):
    """TestClient wired to the SQLite engine with a generous rate limit."""
    from fastapi.testclient import TestClient

    import mira.api.rate_limit as rl_mod
    from mira.api.main import app
    from mira.api.routes import command_lists as routes_mod

    original_limiter = rl_mod._limiter
    rl_mod._limiter = rl_mod.AdminRateLimiter(max_requests=1000, window_seconds=60, engine=db_engine)
    # The routes hold the pre-reload callables if test_jwt_startup reloaded mira.api.deps.
    app.dependency_overrides[routes_mod.get_engine] = lambda: db_engine
    app.dependency_overrides[routes_mod.get_config] = lambda: test_config

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
    rl_mod._limiter = original_limiter
