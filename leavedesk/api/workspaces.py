"""Workspace endpoints: listing, switching and deleting organizations.

Switching sets the ``active-organization-id`` cookie to a signed pointer.
The response carries only the id the caller asked for; organization data
is fetched through the normal org-scoped routes on the next request.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from leavedesk.api.dependencies import (
    ORG_COOKIE,
    CurrentContext,
    CurrentUser,
    Store,
    read_explicit_org,
    read_org_pointer,
    require_capability,
    set_org_pointer_cookie,
)
from leavedesk.api.ratelimit import SWITCH_LIMIT, require_rate_limit
from leavedesk.core.config import SETTINGS
from leavedesk.core.errors import AccessError
from leavedesk.models.principal import OrgContext
from leavedesk.services import organizations as org_service
from leavedesk.services.authorizer import Capability, permissions_for
from leavedesk.services.context_resolver import list_workspaces, resolve_context
from leavedesk.services.workspace_switcher import (
    set_default_organization,
    switch_active_organization,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/workspaces", tags=["workspaces"])


class SwitchIn(BaseModel):
    organization_id: str


class SwitchOut(BaseModel):
    success: bool
    organization_id: str


class WorkspaceOut(BaseModel):
    organization_id: str
    name: str
    slug: str
    role: str
    is_default: bool


class WorkspaceListOut(BaseModel):
    workspaces: list[WorkspaceOut]
    current_organization_id: str | None


class CurrentOut(BaseModel):
    user_id: str
    organization_id: str
    role: str
    permissions: dict[str, bool]


@router.get("", response_model=WorkspaceListOut)
async def get_workspaces(
    request: Request, principal: CurrentUser, store: Store
) -> WorkspaceListOut:
    """All active workspaces of the caller, and the one this request resolves to.

    Listing works even when nothing resolves (no default, stale pointer):
    that is exactly when a client needs the list to pick a workspace.
    """
    workspaces = await list_workspaces(
        store.memberships, store.organizations, principal.user_id
    )
    try:
        ctx = await resolve_context(
            store.memberships,
            principal.user_id,
            explicit_org_id=read_explicit_org(request),
            pointer_org_id=read_org_pointer(request, principal),
        )
        current: str | None = str(ctx.organization_id)
    except AccessError as err:
        logger.debug("No current workspace for user=%s: %s", principal.user_id, err.kind)
        current = None

    return WorkspaceListOut(
        workspaces=[
            WorkspaceOut(
                organization_id=str(w.organization_id),
                name=w.name,
                slug=w.slug,
                role=w.role.value,
                is_default=w.is_default,
            )
            for w in workspaces
        ],
        current_organization_id=current,
    )


@router.get("/current", response_model=CurrentOut)
async def get_current(ctx: CurrentContext) -> CurrentOut:
    return CurrentOut(
        user_id=str(ctx.user_id),
        organization_id=str(ctx.organization_id),
        role=ctx.role.value,
        permissions=permissions_for(ctx.role),
    )


@router.post(
    "/switch",
    response_model=SwitchOut,
    dependencies=[Depends(require_rate_limit(SWITCH_LIMIT))],
)
async def switch(
    body: SwitchIn, response: Response, principal: CurrentUser, store: Store
) -> SwitchOut:
    """Point this session at another organization the caller belongs to.

    On failure no cookie is set, so the session keeps its previous pointer.
    """
    organization_id, pointer = await switch_active_organization(
        store.memberships, principal.user_id, body.organization_id
    )
    set_org_pointer_cookie(response, pointer)
    return SwitchOut(success=True, organization_id=str(organization_id))


@router.post("/default", response_model=SwitchOut)
async def set_default(body: SwitchIn, principal: CurrentUser, store: Store) -> SwitchOut:
    organization_id = await set_default_organization(
        store.memberships, principal.user_id, body.organization_id
    )
    return SwitchOut(success=True, organization_id=str(organization_id))


@router.post("/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear(response: Response, _principal: CurrentUser) -> None:
    """Forget the pointer; the next request resolves to the default workspace."""
    response.delete_cookie(
        key=ORG_COOKIE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=SETTINGS.secure_cookies,
    )


@router.delete("/{organization_id}")
async def delete_workspace(
    organization_id: str,
    request: Request,
    response: Response,
    ctx: Annotated[
        OrgContext, Depends(require_capability(Capability.DELETE_ORGANIZATION))
    ],
    principal: CurrentUser,
    store: Store,
) -> dict:
    """Soft-delete the organization named in the path.

    The resolver took the path id as its explicit hint, so ``ctx`` is the
    caller's admin membership in exactly that organization.
    """
    revoked = await org_service.delete_organization(store, ctx.organization_id)
    if read_org_pointer(request, principal) == str(ctx.organization_id):
        response.delete_cookie(key=ORG_COOKIE, path="/")
    return {
        "success": True,
        "organization_id": str(ctx.organization_id),
        "memberships_revoked": revoked,
    }
