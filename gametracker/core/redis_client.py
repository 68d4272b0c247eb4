"""Redis client configuration and Redis-backed shared-state stores."""

import math
import time
from collections.abc import Callable
from typing import cast
from uuid import UUID, uuid4

import redis

from gametracker.config import settings
from gametracker.core.stores import CsrfEntry, RateLimitStatus

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        client = get_redis_client()
        client.ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


# Trims the window, then records the call only if there is room, in one round trip
ACQUIRE_SCRIPT = """
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', ARGV[1])
if redis.call('ZCARD', KEYS[1]) >= tonumber(ARGV[2]) then
    return 0
end
redis.call('ZADD', KEYS[1], ARGV[3], ARGV[4])
redis.call('EXPIRE', KEYS[1], ARGV[5])
return 1
"""


class RedisRateLimitStore:
    """Sliding-window limiter kept in a Redis sorted set, shared by all instances."""

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str = "steam:api:calls",
        limit: int = 200,
        window: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter with Redis client and window settings."""
        self.redis = redis_client
        self.key = key
        self.limit = limit
        self.window = window
        self._clock = clock
        self._acquire = redis_client.register_script(ACQUIRE_SCRIPT)

    def _cutoff(self, now: float) -> str:
        # "(" makes the bound exclusive so a call exactly one window old still counts
        return f"({now - self.window}"

    def _count(self, now: float) -> int:
        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(self.key, "-inf", self._cutoff(now))
        pipe.zcard(self.key)
        _, count = pipe.execute()
        return int(count)

    def try_acquire(self) -> bool:
        """
        Record a call if the window has room.

        The check and the insert run as one script so concurrent workers
        cannot both take the last slot.

        Returns:
            True if within limit, False if exceeded
        """
        now = self._clock()
        try:
            acquired = self._acquire(
                keys=[self.key],
                args=[self._cutoff(now), self.limit, now, f"{now}:{uuid4().hex}", math.ceil(self.window) + 1],
            )
        except redis.RedisError:
            # On error, allow request (fail open)
            return True
        return bool(int(acquired))

    def status(self) -> RateLimitStatus:
        """Get remaining calls and when the oldest call leaves the window."""
        now = self._clock()
        try:
            count = self._count(now)
            oldest = cast(list[tuple[str, float]], self.redis.zrange(self.key, 0, 0, withscores=True))
        except redis.RedisError:
            return RateLimitStatus(remaining=self.limit, reset_at=now)

        reset_at = float(oldest[0][1]) + self.window if oldest else now
        return RateLimitStatus(remaining=max(0, self.limit - count), reset_at=reset_at)


class RedisCsrfTokenStore:
    """CSRF tokens stored as expiring Redis keys."""

    def __init__(
        self,
        redis_client: redis.Redis,
        prefix: str = "steam:csrf:",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize token store with Redis client."""
        self.redis = redis_client
        self.prefix = prefix
        self._clock = clock

    def _key(self, token: str) -> str:
        return f"{self.prefix}{token}"

    def put(self, token: str, account_id: UUID, expires_at: float) -> None:
        ttl = max(1, math.ceil(expires_at - self._clock()))
        self.redis.setex(self._key(token), ttl, f"{account_id}|{expires_at}")

    def pop(self, token: str) -> CsrfEntry | None:
        try:
            pipe = self.redis.pipeline()
            pipe.get(self._key(token))
            pipe.delete(self._key(token))
            value, _ = pipe.execute()
        except redis.RedisError:
            return None

        if not value:
            return None

        if isinstance(value, bytes):
            value = value.decode()
        account_id, expires_at = value.split("|", 1)
        return CsrfEntry(account_id=UUID(account_id), expires_at=float(expires_at))

    def sweep(self, now: float | None = None) -> int:
        """Expired keys are evicted by Redis itself."""
        return 0
