"""
Sliding window rate limiting backed by Redis.

Each identifier owns a sorted set of request timestamps. A check drops the
entries older than the window, records the current request and counts the
rest inside one MULTI/EXEC transaction, so concurrent workers see a
consistent count.
"""

import math
import time
import uuid
from typing import Optional

import redis.asyncio as redis

from yt_extractor.models.schemas import RateLimitResult
from yt_extractor.utils.logger import logging


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` requests per identifier in any ``window_seconds`` span."""

    def __init__(self, client: "redis.Redis", limit: int = 10, window_seconds: int = 60,
                 prefix: str = "yt-extractor"):
        self.client = client
        self.limit = limit
        self.window_ms = window_seconds * 1000
        self.prefix = prefix

    @classmethod
    def from_config(cls, app_config) -> Optional["SlidingWindowRateLimiter"]:
        """
        Build a limiter from configuration.

        Returns:
            The limiter, or None when no Redis URL is configured (limiting disabled)
        """
        if not app_config.rate_limit_enabled():
            return None

        client = redis.from_url(
            app_config.RATE_LIMIT_REDIS_URL,
            password=app_config.RATE_LIMIT_REDIS_TOKEN or None,
            decode_responses=True,
        )
        logging.info("Rate limiter configured with Redis backend")
        return cls(
            client,
            limit=app_config.RATE_LIMIT_REQUESTS,
            window_seconds=app_config.RATE_LIMIT_WINDOW_SECONDS,
            prefix=app_config.RATE_LIMIT_PREFIX,
        )

    def _key(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier}"

    async def limit_request(self, identifier: str) -> RateLimitResult:
        """
        Record a request and report whether it is within the quota.

        Args:
            identifier: Client identity, e.g. ``<ip>:<path>``

        Returns:
            RateLimitResult with the remaining quota and the reset time (ms)
        """
        key = self._key(identifier)
        now_ms = int(time.time() * 1000)
        member = f"{now_ms}-{uuid.uuid4().hex}"

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now_ms - self.window_ms)
            pipe.zadd(key, {member: now_ms})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.pexpire(key, self.window_ms)
            _, _, count, oldest, _ = await pipe.execute()

        success = count <= self.limit
        if not success:
            # Rejected requests do not consume quota
            await self.client.zrem(key, member)

        oldest_ms = int(oldest[0][1]) if oldest else now_ms
        return RateLimitResult(
            success=success,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset=oldest_ms + self.window_ms,
        )

    async def close(self) -> None:
        await self.client.aclose()


def retry_after_seconds(reset_ms: int, now_ms: Optional[int] = None) -> int:
    """Seconds until ``reset_ms``, rounded up, never less than one."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return max(1, math.ceil((reset_ms - now_ms) / 1000))
