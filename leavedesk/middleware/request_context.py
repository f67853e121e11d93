"""Request context middleware: request id, timing, and per-request log fields.

Three context variables travel with each request:

  request_id_var       set here from X-Request-ID or a fresh UUID
  user_id_var          set by require_user once the bearer token checks out
  organization_id_var  set by require_org_context once the resolver succeeds

``RequestContextFilter`` copies them onto every LogRecord.  It sits on the
output handler (see setup_logging), so records propagated from any module
logger pass through it and a warning raised deep inside the authorizer
still says which request, user and organization it belongs to.
ContextVars (not thread-locals) because many requests share one
event-loop thread.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[str] = ContextVar("user_id", default="-")
organization_id_var: ContextVar[str] = ContextVar("organization_id", default="-")


class RequestContextFilter(logging.Filter):
    """Adds request_id, user_id and organization_id to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        if not hasattr(record, "user_id"):
            record.user_id = user_id_var.get("-")  # type: ignore[attr-defined]
        if not hasattr(record, "organization_id"):
            record.organization_id = organization_id_var.get("-")  # type: ignore[attr-defined]
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, times the request, logs one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)
        user_id_var.set("-")
        organization_id_var.set("-")

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
