"""Liveness and readiness endpoints.

/health answers "is the process alive" and reports each backing service;
it returns 200 even when degraded so an orchestrator does not restart a
process that is merely missing Redis.  /ready returns 503 when the
database is configured but unreachable, since no organization can be
resolved without it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from sqlalchemy import text

from leavedesk.db.engine import engine
from leavedesk.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database() -> str:
    if engine is None:
        return "not_configured"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        logger.exception("Database health check failed")
        return "degraded"


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
        return "ok"
    except Exception:
        logger.exception("Redis health check failed")
        return "degraded"


@router.get("/health")
async def health() -> dict:
    checks = {"database": await _check_database(), "redis": await _check_redis()}
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    # Redis has an in-memory fallback; the database does not.
    if await _check_database() == "degraded":
        return Response(status_code=503)
    return Response(status_code=200)
