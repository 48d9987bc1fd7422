"""Sliding window rate limiting for the credential endpoints."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Deque, DefaultDict

from ..config import Settings
from ..domain.errors import RateLimited

logger = logging.getLogger(__name__)


class RateLimiter:
    """Common interface shared by the in-memory and Redis limiters."""

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max_requests
        self._window = window_seconds

    async def allow(self, key: str) -> bool:
        raise NotImplementedError

    async def guard(self, key: str) -> None:
        """Raise ``RateLimited`` when ``key`` has exhausted its window."""
        if not await self.allow(key):
            logger.info("rate limit exceeded for %s", key)
            raise RateLimited()

    async def close(self) -> None:
        pass


class SlidingWindowRateLimiter(RateLimiter):
    """In-process sliding window limiter for a single event loop.

    Keys are caller-chosen (login names), so keys whose hits have all expired
    are swept at most once per window to keep the map bounded.
    """

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        super().__init__(max_requests, window_seconds)
        self._events: DefaultDict[str, Deque[float]] = DefaultDict(deque)
        self._last_sweep = time.monotonic()

    def _expired(self, hits: Deque[float], now: float) -> bool:
        return not hits or now - hits[-1] > self._window

    def _sweep(self, now: float) -> None:
        stale = [key for key, hits in self._events.items() if self._expired(hits, now)]
        for key in stale:
            del self._events[key]
        self._last_sweep = now

    async def allow(self, key: str) -> bool:
        now = time.monotonic()
        if now - self._last_sweep > self._window:
            self._sweep(now)
        hits = self._events[key]
        while hits and now - hits[0] > self._window:
            hits.popleft()
        if len(hits) >= self._max_requests:
            return False
        hits.append(now)
        return True


async def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Instantiate the configured limiter backend, preferring Redis when reachable."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        from redis import asyncio as aioredis
        from redis.exceptions import RedisError

        from .redis_rate_limiter import RedisSlidingWindowRateLimiter

        client = aioredis.from_url(settings.redis_url)
        try:
            await client.ping()
        except RedisError as exc:
            logger.warning("redis rate limiter unavailable, falling back to in-memory: %s", exc)
            await client.aclose()
        else:
            logger.info("rate limiter configured for redis backend at %s", settings.redis_url)
            return RedisSlidingWindowRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("rate limiter using in-memory backend")
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
