"""Shared test fixtures for all test modules.

Environment is pinned before anything imports `neonhub.config`, so every test
runs against in-memory SQLite with known secrets.
"""

from __future__ import annotations

import base64
import os
import uuid

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SERVICE_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["SUPABASE_JWT_AUDIENCE"] = "authenticated"
os.environ["GITHUB_TOKEN_ENCRYPTION_KEY"] = base64.urlsafe_b64encode(b"n" * 32).decode()
os.environ["AI_GATEWAY_API_KEY"] = "test-gateway-key"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["CORS_ORIGINS"] = "https://neonhub.example,http://localhost:5173"
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from neonhub.models import Base  # noqa: E402

ALICE_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
BOB_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


@pytest.fixture
async def engine():
    """Fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def alice_id() -> uuid.UUID:
    return ALICE_ID


@pytest.fixture
def bob_id() -> uuid.UUID:
    return BOB_ID


def make_github_repo(repo_id: int, name: str | None = None, **overrides) -> dict:
    """A GitHub /user/repos item as the API returns it."""
    name = name or f"repo-{repo_id}"
    repo = {
        "id": repo_id,
        "name": name,
        "full_name": f"alice/{name}",
        "description": f"Description of {name}",
        "language": "Python",
        "stargazers_count": 7,
        "forks_count": 2,
        "clone_url": f"https://github.com/alice/{name}.git",
        "private": False,
    }
    repo.update(overrides)
    return repo


@pytest.fixture
def repo_factory():
    return make_github_repo


@pytest.fixture
def github_repos() -> list[dict]:
    return [
        make_github_repo(42, "proj"),
        make_github_repo(43, "dotfiles", private=True, language=None, description=None),
    ]
