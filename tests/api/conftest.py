"""API test fixtures — httpx.AsyncClient over ASGITransport.

The app's database dependencies are overridden with the per-test in-memory
SQLite session factory. GitHub is never contacted: the `github` fixture
patches the client class the proxy router instantiates.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from jose import jwt

from neonhub.config import settings
from neonhub.deps import (
    ALGORITHM,
    copilot_chat_rate_limit,
    get_db,
    get_service_db,
    github_proxy_rate_limit,
)
from neonhub.main import app

VALID_GITHUB_TOKEN = "ghp_valid1"


def make_jwt(user_id: uuid.UUID, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    payload = {
        "sub": str(user_id),
        "aud": "authenticated",
        "role": "authenticated",
        "email": f"{user_id.hex[:6]}@neonhub.example",
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm=ALGORITHM)


def bearer(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {make_jwt(user_id)}"}


@pytest.fixture
def jwt_for():
    return make_jwt


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def alice_headers(alice_id):
    return bearer(alice_id)


@pytest.fixture
def bob_headers(bob_id):
    return bearer(bob_id)


@pytest.fixture
async def client(session_factory):
    async def override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_service_db] = override_db
    # Fresh in-memory windows for every test
    github_proxy_rate_limit.limiter = None
    copilot_chat_rate_limit.limiter = None

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def github(github_repos):
    """Patch the GitHub client used by the proxy router.

    Yields the mocked class; `github.return_value` is the instance every call
    gets, `github.call_args` shows which token it was built with.
    """
    with patch("neonhub.routers.github_proxy.GitHubClient") as mock_cls:
        instance = mock_cls.return_value
        instance.get_authenticated_user = AsyncMock(return_value={"login": "alice", "id": 9001})
        instance.list_repos = AsyncMock(return_value=github_repos)
        yield mock_cls


@pytest.fixture
def connect(client, github):
    """Run the verify action so a caller has a stored credential."""

    async def _connect(headers: dict, token: str = VALID_GITHUB_TOKEN) -> httpx.Response:
        return await client.post("/api/github-proxy", json={"action": "verify", "token": token}, headers=headers)

    return _connect
