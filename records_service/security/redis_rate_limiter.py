"""Redis-backed sliding window rate limiter."""

from __future__ import annotations

import time
import uuid

from redis.asyncio import Redis

from .rate_limiter import RateLimiter


class RedisSlidingWindowRateLimiter(RateLimiter):
    """Distributed limiter storing hit timestamps in a sorted set per key.

    Each hit is added optimistically inside a MULTI block together with the
    pruning and counting steps; a hit that pushes the set over the limit is
    removed again so rejected requests do not extend the window.
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "records:rate",
    ) -> None:
        super().__init__(max_requests, window_seconds)
        self._client = client
        self._window_ms = window_seconds * 1000
        self._key_prefix = key_prefix

    async def allow(self, key: str) -> bool:
        now_ms = int(time.time() * 1000)
        redis_key = f"{self._key_prefix}:{key}"
        member = f"{now_ms}:{uuid.uuid4().hex}"

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, 0, now_ms - self._window_ms)
            pipe.zadd(redis_key, {member: now_ms})
            pipe.zcard(redis_key)
            pipe.pexpire(redis_key, self._window_ms)
            _, _, current, _ = await pipe.execute()

        if current > self._max_requests:
            await self._client.zrem(redis_key, member)
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
