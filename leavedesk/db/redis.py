"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a shared connection pool
is created at import time; when it is not, ``redis_pool`` is None and the
rate limiter falls back to its in-memory bucket store.

Redis holds only counters here.  Membership and the active-organization
pointer are never cached in Redis: role and membership must reflect the
database on every request, and the pointer lives in the client's cookie.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from leavedesk.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db()."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, rate limiting uses in-memory buckets")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Degrade rather than refuse to start: the limiter fails open per
        # request, authorization never depends on Redis.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
