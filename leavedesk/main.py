from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leavedesk.api.billing import router as billing_router
from leavedesk.api.dependencies import ORG_HEADER, access_error_handler
from leavedesk.api.employees import router as employees_router
from leavedesk.api.health import router as health_router
from leavedesk.api.invitations import accept_router as invitation_accept_router
from leavedesk.api.invitations import router as invitations_router
from leavedesk.api.leave_requests import router as leave_requests_router
from leavedesk.api.metrics_endpoint import router as metrics_router
from leavedesk.api.organizations import router as organizations_router
from leavedesk.api.settings import router as settings_router
from leavedesk.api.teams import router as teams_router
from leavedesk.api.workspaces import router as workspaces_router
from leavedesk.core.config import SETTINGS
from leavedesk.core.errors import AccessError
from leavedesk.core.logging import setup_logging
from leavedesk.db.engine import lifespan_db
from leavedesk.db.redis import lifespan_redis
from leavedesk.middleware.metrics import MetricsMiddleware
from leavedesk.middleware.request_context import (
    RequestContextFilter,
    RequestContextMiddleware,
)

setup_logging(
    SETTINGS.log_level,
    json_format=SETTINGS.log_json,
    filters=[RequestContextFilter()],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="leavedesk",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(AccessError, access_error_handler)  # type: ignore[arg-type]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", ORG_HEADER, "X-Request-ID"],
)

# Last added runs first: RequestContext -> Metrics -> CORS -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(workspaces_router)
app.include_router(organizations_router)
app.include_router(settings_router)
app.include_router(employees_router)
app.include_router(leave_requests_router)
app.include_router(teams_router)
app.include_router(invitations_router)
app.include_router(invitation_accept_router)
app.include_router(billing_router)

logger.info(
    "leavedesk started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
