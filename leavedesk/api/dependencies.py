"""FastAPI dependencies: the gate every organization-scoped route goes through.

    require_user          bearer JWT -> Principal (who)
    require_org_context   Principal + hints -> OrgContext (who, where, as what)
    require_capability    OrgContext + capability -> OrgContext or 403

Routes declare one of these and receive the resolved context as an
argument.  None of them reads organization ids from anywhere else.

``AccessError`` from the core is turned into an HTTPException by
``access_error_to_http`` and nowhere else, so every denial of the same
kind has the same status and body.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer

from leavedesk.core.config import SETTINGS
from leavedesk.core.errors import (
    AccessDenied,
    AccessError,
    DenialReason,
    Unauthenticated,
    public_error,
)
from leavedesk.db.engine import async_session_factory
from leavedesk.middleware.request_context import organization_id_var, user_id_var
from leavedesk.models.principal import OrgContext, Principal
from leavedesk.repos.store import DataStore, memory_store, sql_store
from leavedesk.services import token_service
from leavedesk.services.authorizer import Capability, authorize
from leavedesk.services.context_resolver import parse_organization_id, resolve_context

logger = logging.getLogger(__name__)

ORG_HEADER = "X-Organization-Id"
ORG_COOKIE = "active-organization-id"

# auto_error=False: a missing header goes through access_error_to_http like
# every other authentication failure.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/token", auto_error=False)


def set_org_pointer_cookie(response: Response, pointer: str) -> None:
    """Store a signed active-organization pointer for this browser session."""
    response.set_cookie(
        key=ORG_COOKIE,
        value=pointer,
        max_age=SETTINGS.org_cookie_ttl_days * 24 * 3600,
        httponly=True,
        samesite="lax",
        secure=SETTINGS.secure_cookies,
        path="/",
    )


def access_error_to_http(err: AccessError) -> HTTPException:
    status_code, message = public_error(err)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=message, headers=headers)


async def get_store() -> AsyncIterator[DataStore]:
    """Yield the repositories for this request.

    With a database configured, one session per request: committed when the
    route returns, rolled back when it raises.  Declared below with
    ``scope="function"`` so the commit finishes before the response is sent;
    a client that got a 2xx can rely on its next request seeing the write,
    and a failed commit surfaces as a 500 instead of a lost write.
    """
    if async_session_factory is None:
        yield memory_store
        return

    async with async_session_factory() as session:
        try:
            yield sql_store(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


Store = Annotated[DataStore, Depends(get_store, scope="function")]


async def require_user(
    raw_token: Annotated[str | None, Depends(oauth2_scheme)],
) -> Principal:
    """Validate the bearer token and return the Principal."""
    if not raw_token:
        raise access_error_to_http(Unauthenticated("missing bearer token"))
    try:
        claims = token_service.decode_access_token(raw_token)
        user_id = UUID(claims["sub"])
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise access_error_to_http(Unauthenticated("token expired")) from None
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.warning("Invalid token rejected: %s", e)
        raise access_error_to_http(Unauthenticated("invalid token")) from None

    user_id_var.set(str(user_id))
    return Principal(user_id=user_id, email=claims.get("email", ""))


def read_org_pointer(request: Request, principal: Principal) -> str | None:
    """Organization id from the active-organization cookie, if it verifies.

    A pointer that fails verification is treated as absent.  It never
    reaches the resolver, so a forged cookie cannot even pick a candidate.
    """
    raw = request.cookies.get(ORG_COOKIE)
    if not raw:
        return None
    try:
        return token_service.decode_org_pointer(raw, sub=str(principal.user_id))
    except jwt.InvalidTokenError as e:
        logger.warning(
            "Ignoring invalid active-organization pointer for user=%s: %s",
            principal.user_id,
            e,
        )
        return None


def _same_organization(a: str, b: str) -> bool:
    try:
        return parse_organization_id(a) == parse_organization_id(b)
    except AccessError as err:
        raise access_error_to_http(err) from None


def read_explicit_org(request: Request) -> str | None:
    """Explicit hint: the ``organization_id`` path parameter or the header.

    When both are present they must name the same organization; a request
    cannot address one organization in its URL and another in its headers.
    Spelling differences (case, surrounding blanks) do not count.
    """
    from_path = request.path_params.get("organization_id")
    from_header = request.headers.get(ORG_HEADER)
    if from_path and from_header and not _same_organization(from_path, from_header):
        logger.warning(
            "Conflicting organization hints: path=%s header=%s", from_path, from_header
        )
        raise access_error_to_http(AccessDenied(DenialReason.ORGANIZATION_MISMATCH))
    return from_path or from_header


async def require_org_context(
    request: Request,
    principal: Annotated[Principal, Depends(require_user)],
    store: Store,
) -> OrgContext:
    """Resolve the organization this request acts in."""
    try:
        ctx = await resolve_context(
            store.memberships,
            principal.user_id,
            explicit_org_id=read_explicit_org(request),
            pointer_org_id=read_org_pointer(request, principal),
            email=principal.email,
        )
    except AccessError as err:
        raise access_error_to_http(err) from None

    organization_id_var.set(str(ctx.organization_id))
    return ctx


def require_capability(capability: Capability):
    """Dependency factory: resolve the organization, then demand a capability.

    Usage::

        @router.post("/{leave_id}/review")
        async def review(ctx: Annotated[OrgContext, Depends(require_capability(Capability.REVIEW_LEAVE))]):
            ...
    """

    async def _guard(
        ctx: Annotated[OrgContext, Depends(require_org_context)],
    ) -> OrgContext:
        try:
            authorize(ctx, capability)
        except AccessError as err:
            raise access_error_to_http(err) from None
        return ctx

    return _guard


# Shorthand for route signatures.
CurrentUser = Annotated[Principal, Depends(require_user)]
CurrentContext = Annotated[OrgContext, Depends(require_org_context)]


async def access_error_handler(_request: Request, exc: AccessError) -> JSONResponse:
    """App-wide handler for AccessError raised inside route bodies."""
    http_exc = access_error_to_http(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )
