"""Per-identity fixed-window rate limiting.

Two backends share one contract, `await limiter.check(identity)`:

- FixedWindowRateLimiter keeps counters in process memory. Limits are per
  instance and reset on restart. Expired windows are replaced on the next
  request from the same identity but never evicted, so the table holds one
  entry per identity seen since startup.
- RedisRateLimiter keeps counters in Redis so every instance sees the same
  window.

A window opens on the first request, lasts `window_seconds`, and restarts
unconditionally once it has elapsed. Bursts straddling a boundary can reach
twice the ceiling.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int | None = None


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """In-memory fixed-window counter keyed by identity."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    async def check(self, identity: str) -> RateLimitDecision:
        now = self._clock()
        window = self._windows.get(identity)

        if window is None or now > window.reset_at:
            self._windows[identity] = _Window(count=1, reset_at=now + self.window_seconds)
            return RateLimitDecision(allowed=True)

        if window.count >= self.max_requests:
            return RateLimitDecision(allowed=False, retry_after=math.ceil(window.reset_at - now))

        window.count += 1
        return RateLimitDecision(allowed=True)


class RedisRateLimiter:
    """Fixed-window counter shared through Redis (INCR + EXPIRE)."""

    def __init__(
        self,
        redis: aioredis.Redis,
        scope: str,
        max_requests: int,
        window_seconds: int = 60,
    ):
        self.redis = redis
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def _key(self, identity: str) -> str:
        return f"ratelimit:{self.scope}:{identity}"

    async def check(self, identity: str) -> RateLimitDecision:
        key = self._key(identity)
        count = await self.redis.incr(key)
        if count == 1:
            await self.redis.expire(key, self.window_seconds)

        if count <= self.max_requests:
            return RateLimitDecision(allowed=True)

        ttl = await self.redis.ttl(key)
        if ttl < 0:
            # Counter lost its expiry (e.g. crash between INCR and EXPIRE)
            await self.redis.expire(key, self.window_seconds)
            ttl = self.window_seconds
        return RateLimitDecision(allowed=False, retry_after=max(ttl, 1))
