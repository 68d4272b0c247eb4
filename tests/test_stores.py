"""Tests for the rate limit window and CSRF token stores."""

from unittest.mock import MagicMock
from uuid import uuid4

import redis

from gametracker.core.redis_client import ACQUIRE_SCRIPT, RedisCsrfTokenStore, RedisRateLimitStore
from gametracker.core.stores import InMemoryCsrfTokenStore, InMemoryRateLimitStore


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_rate_limit_refuses_when_window_full() -> None:
    """Test the limiter stops at its capacity."""
    clock = FakeClock()
    limiter = InMemoryRateLimitStore(limit=3, window=60.0, clock=clock)

    assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]
    assert limiter.status().remaining == 0


def test_rate_limit_window_slides() -> None:
    """Test calls older than the window stop counting."""
    clock = FakeClock()
    limiter = InMemoryRateLimitStore(limit=2, window=60.0, clock=clock)
    limiter.try_acquire()
    clock.now += 30
    limiter.try_acquire()

    assert limiter.try_acquire() is False

    clock.now += 31
    status = limiter.status()
    assert status.remaining == 1
    assert status.reset_at == 1_030.0 + 60.0
    assert limiter.try_acquire() is True


def test_rate_limit_status_when_idle() -> None:
    clock = FakeClock()
    limiter = InMemoryRateLimitStore(limit=200, window=60.0, clock=clock)
    status = limiter.status()
    assert status.remaining == 200
    assert status.reset_at == clock.now


def test_csrf_token_single_use() -> None:
    """Test a token can be consumed once."""
    store = InMemoryCsrfTokenStore()
    account_id = uuid4()
    store.put("state", account_id, expires_at=2_000.0)

    entry = store.pop("state")
    assert entry is not None
    assert entry.account_id == account_id
    assert store.pop("state") is None


def test_csrf_sweep_removes_only_expired() -> None:
    clock = FakeClock(1_000.0)
    store = InMemoryCsrfTokenStore(clock=clock)
    store.put("old", uuid4(), expires_at=900.0)
    store.put("fresh", uuid4(), expires_at=1_500.0)

    assert store.sweep() == 1
    assert len(store) == 1
    assert store.pop("fresh") is not None


def test_redis_rate_limit_acquire() -> None:
    """Test the Redis limiter checks and records a call in one script call."""
    client = MagicMock()
    script = client.register_script.return_value
    script.return_value = 1
    limiter = RedisRateLimitStore(client, limit=200, window=60.0, clock=FakeClock(1_000.0))

    assert limiter.try_acquire() is True

    client.register_script.assert_called_once_with(ACQUIRE_SCRIPT)
    _, kwargs = script.call_args
    assert kwargs["keys"] == ["steam:api:calls"]
    cutoff, limit, score, member, ttl = kwargs["args"]
    assert (cutoff, limit, score, ttl) == ("(940.0", 200, 1_000.0, 61)
    assert member.startswith("1000.0:")
    client.zadd.assert_not_called()
    client.pipeline.assert_not_called()


def test_redis_rate_limit_refuses_when_full() -> None:
    client = MagicMock()
    client.register_script.return_value.return_value = 0
    limiter = RedisRateLimitStore(client, limit=200)

    assert limiter.try_acquire() is False


def test_redis_rate_limit_fails_open() -> None:
    client = MagicMock()
    client.register_script.return_value.side_effect = redis.ConnectionError("down")
    limiter = RedisRateLimitStore(client)

    assert limiter.try_acquire() is True


def test_redis_rate_limit_status() -> None:
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [0, 3]
    client.zrange.return_value = [(b"970.0:abc", 970.0)]
    limiter = RedisRateLimitStore(client, limit=200, window=60.0, clock=FakeClock(1_000.0))

    status = limiter.status()

    assert status.remaining == 197
    assert status.reset_at == 1_030.0


def test_redis_csrf_store_round_trip() -> None:
    """Test tokens are stored with a TTL and consumed atomically."""
    client = MagicMock()
    store = RedisCsrfTokenStore(client, clock=FakeClock(1_000.0))
    account_id = uuid4()

    store.put("state", account_id, expires_at=1_600.0)
    client.setex.assert_called_once_with("steam:csrf:state", 600, f"{account_id}|1600.0")

    client.pipeline.return_value.execute.return_value = [f"{account_id}|1600.0".encode(), 1]
    entry = store.pop("state")
    assert entry is not None
    assert entry.account_id == account_id
    assert entry.expires_at == 1_600.0

    client.pipeline.return_value.execute.return_value = [None, 0]
    assert store.pop("state") is None
