"""FastAPI dependency injection providers.

Usage in routers:
    async def endpoint(caller: GitHubCaller, db: ServiceDB):
        ...

Dependency order is the gate order for every proxy endpoint: the bearer JWT is
resolved to an Identity first, then the endpoint's rate limiter runs for that
identity. Both fail closed.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

import redis.asyncio as aioredis
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from neonhub.config import settings
from neonhub.db.session import async_session_factory, service_session_factory
from neonhub.errors import ConfigurationError, InvalidInput, RateLimitExceeded, Unauthenticated
from neonhub.schemas.identity import Identity
from neonhub.services.rate_limiter import FixedWindowRateLimiter, RedisRateLimiter

logger = structlog.get_logger()

# --- Database ---

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a caller-scoped async database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_service_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a service-role session for credential custody and sync writes."""
    async with service_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# --- Redis ---

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Provide a Redis connection from the pool."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_pool


# --- Auth ---

security = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"


def _decode_token(token: str) -> dict:
    """Decode and validate an auth-service JWT."""
    if not settings.SUPABASE_JWT_SECRET:
        raise ConfigurationError("SUPABASE_JWT_SECRET is not configured")

    options = {} if settings.SUPABASE_JWT_AUDIENCE else {"verify_aud": False}
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.SUPABASE_JWT_AUDIENCE or None,
            options=options,
        )
    except JWTError as e:
        logger.warning("auth_token_rejected", error=type(e).__name__)
        raise Unauthenticated() from e


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    """Resolve the caller from the bearer token. Never trusts body fields."""
    if credentials is None:
        logger.warning("auth_header_missing")
        raise Unauthenticated("Authentication required")

    claims = _decode_token(credentials.credentials)
    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError as e:
        logger.warning("auth_subject_invalid")
        raise Unauthenticated() from e

    return Identity(user_id=user_id, email=claims.get("email"), role=claims.get("role"))


CurrentIdentity = Annotated[Identity, Depends(get_identity)]


# --- Rate limiting ---

class RateLimit:
    """Per-endpoint limiter, built lazily from settings on first use."""

    def __init__(self, scope: str, max_requests: int):
        self.scope = scope
        self.max_requests = max_requests
        self.limiter: FixedWindowRateLimiter | RedisRateLimiter | None = None

    async def get_limiter(self) -> FixedWindowRateLimiter | RedisRateLimiter:
        if self.limiter is None:
            window = settings.RATE_LIMIT_WINDOW_SECONDS
            if settings.RATE_LIMIT_BACKEND == "redis":
                self.limiter = RedisRateLimiter(await get_redis(), self.scope, self.max_requests, window)
            else:
                self.limiter = FixedWindowRateLimiter(self.max_requests, window)
        return self.limiter

    async def enforce(self, identity: Identity) -> Identity:
        limiter = await self.get_limiter()
        decision = await limiter.check(str(identity.user_id))
        if not decision.allowed:
            logger.warning(
                "rate_limit_exceeded",
                scope=self.scope,
                user_id=str(identity.user_id),
                retry_after=decision.retry_after,
            )
            raise RateLimitExceeded(decision.retry_after)
        return identity


github_proxy_rate_limit = RateLimit("github-proxy", settings.GITHUB_PROXY_RATE_LIMIT)
copilot_chat_rate_limit = RateLimit("copilot-chat", settings.COPILOT_CHAT_RATE_LIMIT)


async def github_proxy_caller(identity: CurrentIdentity) -> Identity:
    return await github_proxy_rate_limit.enforce(identity)


async def copilot_chat_caller(identity: CurrentIdentity) -> Identity:
    return await copilot_chat_rate_limit.enforce(identity)


# --- Request body ---

async def read_json_body(request: Request) -> dict:
    """Parse the request body as a JSON object. Read after the auth and rate gates."""
    try:
        body = await request.json()
    except ValueError as e:
        raise InvalidInput("Invalid request body") from e
    if not isinstance(body, dict):
        raise InvalidInput("Invalid request body")
    return body


# Type aliases for cleaner router signatures
DB = Annotated[AsyncSession, Depends(get_db)]
ServiceDB = Annotated[AsyncSession, Depends(get_service_db)]
GitHubCaller = Annotated[Identity, Depends(github_proxy_caller)]
ChatCaller = Annotated[Identity, Depends(copilot_chat_caller)]
