"""Token-bucket rate limiting.

A bucket holds up to ``capacity`` tokens and regains ``refill_rate``
tokens per second; each request spends one.  Bursts up to the capacity
pass, the long-run rate is capped at the refill rate.

Used on the two endpoints that are cheap to hammer and interesting to an
attacker: workspace switching (probing organization ids) and invitation
sending (mail amplification).
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    limit: int
    retry_after: float  # seconds until the next token, 0 when allowed


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """capacity: burst size; refill_rate: tokens per second."""

    capacity: int = 60
    refill_rate: float = 1.0


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    """Per-process buckets.  Fine for dev and tests; not shared across workers."""

    def __init__(self) -> None:
        # key -> (tokens, last_refill monotonic time)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()
        tokens, last = self._buckets.get(key, (float(config.capacity), now))
        tokens = min(config.capacity, tokens + (now - last) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True,
                remaining=int(tokens),
                limit=config.capacity,
                retry_after=0,
            )

        self._buckets[key] = (tokens, now)
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=(1 - tokens) / config.refill_rate,
        )

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


class RedisRateLimiter:
    """Buckets in Redis, shared by every API worker.

    The refill-and-spend step runs as one Lua script so two concurrent
    requests cannot both spend the same token.
    """

    # KEYS[1] bucket key; ARGV: capacity, refill_rate, now (seconds)
    # Returns {allowed 0|1, remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local capacity = tonumber(ARGV[1])
    local rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = math.ceil(capacity / rate) + 60

    local state = redis.call('HMGET', KEYS[1], 'tokens', 'ts')
    local tokens = tonumber(state[1]) or capacity
    local ts = tonumber(state[2]) or now

    tokens = math.min(capacity, tokens + (now - ts) * rate)

    local allowed = 0
    local retry_ms = 0
    if tokens >= 1 then
        tokens = tokens - 1
        allowed = 1
    else
        retry_ms = math.ceil((1 - tokens) / rate * 1000)
    end

    redis.call('HSET', KEYS[1], 'tokens', tokens, 'ts', now)
    redis.call('EXPIRE', KEYS[1], ttl)
    return {allowed, math.floor(tokens), retry_ms}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = None

    def _key(self, key: str) -> str:
        return f"leavedesk:ratelimit:{key}"

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        if self._script is None:
            self._script = self._redis.register_script(self._LUA_SCRIPT)
        allowed, remaining, retry_ms = await self._script(
            keys=[self._key(key)],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining) if allowed else 0,
            limit=config.capacity,
            retry_after=retry_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._key(key))
