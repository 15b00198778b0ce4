"""
Unit tests for the fixed-window rate limiter and its counter stores.
"""

from unittest.mock import MagicMock

import pytest

from polly.security.rate_limit import (
    CREATE_POLL,
    LOGIN,
    REGISTER,
    UPDATE_POLL,
    MemoryCounterStore,
    RateLimiter,
    RedisCounterStore,
    storage_from_uri,
)


class TestFixedWindow:

    def test_five_per_minute(self, limiter, clock):
        """Calls 1-5 admit, call 6 rejects, a call after the window admits."""
        results = [limiter.admit("login_a@b.co", 5, 60_000) for _ in range(6)]
        assert results == [True] * 5 + [False]

        clock.advance(60_001)
        assert limiter.admit("login_a@b.co", 5, 60_000) is True

    def test_window_resets_exactly_at_window_end(self, limiter, clock):
        for _ in range(5):
            limiter.admit("k", 5, 60_000)
        clock.advance(59_999)
        assert limiter.admit("k", 5, 60_000) is False
        clock.advance(1)
        assert limiter.admit("k", 5, 60_000) is True

    def test_rejected_calls_are_counted(self, clock):
        store = MemoryCounterStore()
        limiter = RateLimiter(store=store, clock=clock)
        for _ in range(8):
            limiter.admit("k", 5, 60_000)
        assert store._counters["k"].count == 8
        assert limiter.admit("k", 5, 60_000) is False

    def test_window_is_fixed_not_sliding(self, limiter, clock):
        """Hits late in a window do not extend it."""
        assert limiter.admit("k", 2, 60_000)
        clock.advance(50_000)
        assert limiter.admit("k", 2, 60_000)
        assert not limiter.admit("k", 2, 60_000)
        clock.advance(10_000)
        assert limiter.admit("k", 2, 60_000)

    def test_keys_are_independent(self, limiter):
        for _ in range(5):
            limiter.admit("create_poll_u1", 5, 60_000)
        assert limiter.admit("create_poll_u1", 5, 60_000) is False
        assert limiter.admit("create_poll_u2", 5, 60_000) is True

    def test_reset(self, limiter):
        for _ in range(6):
            limiter.admit("k", 5, 60_000)
        limiter.reset("k")
        assert limiter.admit("k", 5, 60_000) is True


class TestPolicies:

    def test_action_policies(self):
        assert (LOGIN.max_attempts, LOGIN.window_ms) == (5, 60_000)
        assert (REGISTER.max_attempts, REGISTER.window_ms) == (3, 3_600_000)
        assert (CREATE_POLL.max_attempts, CREATE_POLL.window_ms) == (5, 60_000)
        assert (UPDATE_POLL.max_attempts, UPDATE_POLL.window_ms) == (10, 60_000)

    def test_admit_policy(self, limiter):
        assert [limiter.admit_policy("register_global", REGISTER) for _ in range(4)] == [
            True, True, True, False,
        ]


class TestStores:

    def test_storage_from_uri_memory(self):
        assert isinstance(storage_from_uri("memory://"), MemoryCounterStore)
        assert isinstance(storage_from_uri(None), MemoryCounterStore)

    def test_storage_from_uri_redis(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr("polly.security.rate_limit.redis.Redis.from_url", lambda uri: client)
        store = storage_from_uri("redis://localhost:6379/0")
        assert isinstance(store, RedisCounterStore)

    def test_storage_from_uri_unknown(self):
        with pytest.raises(ValueError):
            storage_from_uri("mongodb://localhost")

    def test_redis_store_opens_window_then_increments(self):
        client = MagicMock()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [True, 3]

        store = RedisCounterStore(client)
        assert store.hit("login_a@b.co", 60_000, now_ms=0) == 3

        pipe.set.assert_called_once_with("polly:ratelimit:login_a@b.co", 0, px=60_000, nx=True)
        pipe.incr.assert_called_once_with("polly:ratelimit:login_a@b.co")

    def test_limiter_over_redis_store(self):
        client = MagicMock()
        pipe = client.pipeline.return_value
        pipe.execute.side_effect = [[True, 1], [None, 2], [None, 3], [None, 4]]

        limiter = RateLimiter(store=RedisCounterStore(client))
        assert [limiter.admit_policy("register_global", REGISTER) for _ in range(4)] == [
            True, True, True, False,
        ]

    def test_redis_reset(self):
        client = MagicMock()
        RedisCounterStore(client).reset("k")
        client.delete.assert_called_once_with("polly:ratelimit:k")
