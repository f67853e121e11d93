"""Invitation endpoints.

The organization id is part of the path here, and the resolver treats it
as the explicit hint: ``ctx.organization_id`` is always the path id, and a
caller who is not an admin member of it never reaches the handler.

Email delivery is out of scope; the raw token is returned once in the
create response and only its hash is stored.

Accepting is the one route without an organization in the path or any
header: the invitee is not a member yet, so the token itself names the
organization.  It lives on ``accept_router``.
"""

from __future__ import annotations

import logging
import time
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from leavedesk.api.dependencies import (
    CurrentUser,
    Store,
    require_capability,
    set_org_pointer_cookie,
)
from leavedesk.api.ratelimit import INVITATION_LIMIT, require_rate_limit
from leavedesk.models.invitation import Invitation
from leavedesk.models.organization import Role
from leavedesk.models.principal import OrgContext
from leavedesk.services import organizations as org_service
from leavedesk.services import token_service
from leavedesk.services.authorizer import Capability
from leavedesk.services.protected import fetch_scoped, scoped_add

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/organizations/{organization_id}/invitations", tags=["invitations"]
)
accept_router = APIRouter(prefix="/v1/invitations", tags=["invitations"])

_manage_invitations = require_capability(Capability.MANAGE_INVITATIONS)


class InvitationIn(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role = Role.EMPLOYEE


class InvitationOut(BaseModel):
    id: str
    email: str
    role: str
    status: str
    invited_by: str
    expires_at: int


class InvitationCreatedOut(InvitationOut):
    token: str


def _fields(inv: Invitation, now: int) -> dict:
    # Expiry is computed on read; no sweeper rewrites stored rows.
    shown = "expired" if inv.status == "pending" and inv.is_expired(now) else inv.status
    return {
        "id": str(inv.id),
        "email": inv.email,
        "role": inv.role,
        "status": shown,
        "invited_by": str(inv.invited_by),
        "expires_at": inv.expires_at,
    }


@router.get("", response_model=list[InvitationOut])
async def list_invitations(
    organization_id: str,
    ctx: Annotated[OrgContext, Depends(_manage_invitations)],
    store: Store,
) -> list[InvitationOut]:
    now = int(time.time())
    invitations = await store.invitations.find(ctx.organization_id)
    return [InvitationOut(**_fields(i, now)) for i in invitations]


@router.post(
    "",
    response_model=InvitationCreatedOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_rate_limit(INVITATION_LIMIT))],
)
async def create_invitation(
    organization_id: str,
    body: InvitationIn,
    ctx: Annotated[OrgContext, Depends(_manage_invitations)],
    store: Store,
) -> InvitationCreatedOut:
    now = int(time.time())
    email = body.email.strip().lower()

    existing_user = await store.users.get_by_email(email)
    if existing_user is not None and (
        await store.memberships.get_active(existing_user.id, ctx.organization_id)
    ):
        raise HTTPException(status_code=409, detail="already a member")

    for pending in await store.invitations.find(
        ctx.organization_id, email=email, status="pending"
    ):
        if not pending.is_expired(now):
            raise HTTPException(status_code=409, detail="invitation already pending")

    invitation, token = Invitation.new(
        organization_id=ctx.organization_id,
        email=email,
        role=body.role.value,
        invited_by=ctx.user_id,
        now=now,
    )
    await scoped_add(store.invitations, ctx, invitation)
    logger.info(
        "Invitation created id=%s org=%s role=%s",
        invitation.id,
        ctx.organization_id,
        invitation.role,
    )
    return InvitationCreatedOut(**_fields(invitation, now), token=token)


@router.delete("/{invitation_id}", response_model=InvitationOut)
async def cancel_invitation(
    organization_id: str,
    invitation_id: UUID,
    ctx: Annotated[OrgContext, Depends(_manage_invitations)],
    store: Store,
) -> InvitationOut:
    invitation = await fetch_scoped(store.invitations, ctx, invitation_id)
    if invitation.status != "pending":
        raise HTTPException(
            status_code=400, detail=f"cannot cancel a {invitation.status} invitation"
        )
    updated = await store.invitations.update(
        ctx.organization_id, invitation.id, status="cancelled"
    )
    if updated is None:
        raise HTTPException(status_code=409, detail="invitation changed concurrently")
    return InvitationOut(**_fields(updated, int(time.time())))


class InvitationAcceptIn(BaseModel):
    token: str = Field(min_length=1, max_length=512)


class InvitationAcceptedOut(BaseModel):
    success: bool
    organization_id: str
    name: str
    role: str


@accept_router.post(
    "/accept",
    response_model=InvitationAcceptedOut,
    dependencies=[Depends(require_rate_limit(INVITATION_LIMIT))],
)
async def accept_invitation(
    body: InvitationAcceptIn,
    principal: CurrentUser,
    response: Response,
    store: Store,
) -> InvitationAcceptedOut:
    """Join the inviting organization and make it the active one.

    Wrong, used, cancelled and expired tokens and tokens addressed to a
    different email all get the same 403.
    """
    try:
        invitation, org, _ = await org_service.accept_invitation(
            store,
            principal.user_id,
            principal.email,
            body.token,
            now=int(time.time()),
        )
    except org_service.AlreadyMemberError:
        raise HTTPException(status_code=409, detail="already a member") from None

    pointer = token_service.create_org_pointer(
        sub=str(principal.user_id), organization_id=str(org.id)
    )
    set_org_pointer_cookie(response, pointer)
    return InvitationAcceptedOut(
        success=True,
        organization_id=str(org.id),
        name=org.name,
        role=invitation.role,
    )
