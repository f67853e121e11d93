"""Rate-limit dependency for FastAPI routes.

Declared per route, so only the endpoints that need a limit pay for one.
Keys are ``user:<sub>`` for bearer-authenticated calls and ``ip:<addr>``
otherwise.  ``X-RateLimit-*`` headers are written onto the response the
route returns.

When the Redis backend errors the request is let through: rate limiting
is abuse protection, never an authorization decision.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from fastapi import HTTPException, Request, Response, status
from redis.exceptions import RedisError

from leavedesk.core.metrics import RATE_LIMIT_HITS
from leavedesk.db.redis import redis_pool
from leavedesk.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

if redis_pool is not None:
    rate_limiter: RateLimiter = RedisRateLimiter(redis_pool)
else:
    rate_limiter = InMemoryRateLimiter()

SWITCH_LIMIT = RateLimitConfig(capacity=20, refill_rate=0.5)
INVITATION_LIMIT = RateLimitConfig(capacity=10, refill_rate=0.1)


def require_rate_limit(config: RateLimitConfig = RateLimitConfig()):
    """Dependency factory: spend one token from the caller's bucket.

    Usage::

        @router.post("/switch", dependencies=[Depends(require_rate_limit(SWITCH_LIMIT))])
    """

    async def _check(request: Request, response: Response) -> None:
        key = _build_key(request)
        try:
            result = await rate_limiter.check(key, config)
        except RedisError:
            logger.exception("Rate limiter unavailable, allowing request key=%s", key)
            return

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(
                key_type="user" if key.startswith("user:") else "ip"
            ).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _build_key(request: Request) -> str:
    # Unverified decode: only picks the bucket.  require_user does the real check.
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        try:
            claims = pyjwt.decode(
                auth_header[7:], options={"verify_signature": False}
            )
        except pyjwt.InvalidTokenError:
            claims = {}
        sub = claims.get("sub")
        if sub:
            return f"user:{sub}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
