"""
Fixed-window rate limiting keyed by arbitrary strings.

A window opens on the first hit for a key and closes ``window_ms`` later.
Every hit is counted, including the ones that get rejected, so a key that
keeps hammering stays over the limit until its window ends.
"""
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict

import redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    max_attempts: int
    window_ms: int


LOGIN = RateLimitPolicy("login", max_attempts=5, window_ms=60_000)
REGISTER = RateLimitPolicy("register", max_attempts=3, window_ms=3_600_000)
CREATE_POLL = RateLimitPolicy("create_poll", max_attempts=5, window_ms=60_000)
UPDATE_POLL = RateLimitPolicy("update_poll", max_attempts=10, window_ms=60_000)


@dataclass
class CounterState:
    count: int
    window_end: int


class MemoryCounterStore:
    """
    Process-local counters. Keys are never evicted, and each process (or
    worker) keeps its own map, so limits are per instance.
    """

    def __init__(self):
        self._counters: Dict[str, CounterState] = {}
        self._lock = Lock()

    def hit(self, key: str, window_ms: int, now_ms: int) -> int:
        with self._lock:
            state = self._counters.get(key)
            if state is None or now_ms >= state.window_end:
                state = CounterState(count=0, window_end=now_ms + window_ms)
                self._counters[key] = state
            state.count += 1
            return state.count

    def reset(self, key: str) -> None:
        with self._lock:
            self._counters.pop(key, None)


class RedisCounterStore:
    """Counters shared by every instance; Redis expires each window."""

    def __init__(self, client: redis.Redis, prefix: str = "polly:ratelimit:"):
        self._client = client
        self._prefix = prefix

    def hit(self, key: str, window_ms: int, now_ms: int) -> int:
        name = self._prefix + key
        pipe = self._client.pipeline()
        # Opens the window only if none is running; INCR keeps the TTL.
        pipe.set(name, 0, px=window_ms, nx=True)
        pipe.incr(name)
        _, count = pipe.execute()
        return int(count)

    def reset(self, key: str) -> None:
        self._client.delete(self._prefix + key)


def storage_from_uri(uri: str | None):
    uri = uri or "memory://"
    if uri.startswith("memory://"):
        return MemoryCounterStore()
    if uri.startswith(("redis://", "rediss://", "unix://")):
        return RedisCounterStore(redis.Redis.from_url(uri))
    raise ValueError(f"Unsupported rate limit storage: {uri}")


def _now_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    def __init__(self, store=None, clock: Callable[[], int] = _now_ms):
        self.store = store or MemoryCounterStore()
        self.clock = clock

    def init_app(self, app):
        self.store = storage_from_uri(app.config.get("RATELIMIT_STORAGE_URI"))
        app.extensions["polly_rate_limiter"] = self

    def admit(self, key: str, max_attempts: int, window_ms: int) -> bool:
        count = self.store.hit(key, window_ms, self.clock())
        allowed = count <= max_attempts
        if not allowed:
            logger.warning("Rate limit exceeded key=%s count=%s max=%s", key, count, max_attempts)
        return allowed

    def admit_policy(self, key: str, policy: RateLimitPolicy) -> bool:
        return self.admit(key, policy.max_attempts, policy.window_ms)

    def reset(self, key: str) -> None:
        self.store.reset(key)
