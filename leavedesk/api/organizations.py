"""Organization endpoints.

``/v1/organization`` (singular) is always the organization the request
resolved to; there is no id in the path to tamper with.  Creating an
organization is the one write that needs no organization context.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from leavedesk.api.dependencies import (
    CurrentContext,
    CurrentUser,
    Store,
    require_capability,
)
from leavedesk.core.errors import AccessDenied, DenialReason
from leavedesk.models.organization import Membership, Role
from leavedesk.models.principal import OrgContext
from leavedesk.services import organizations as org_service
from leavedesk.services.authorizer import Capability, authorize, permissions_for

router = APIRouter(prefix="/v1", tags=["organizations"])

_view_members = require_capability(Capability.VIEW_MEMBERS)
_manage_members = require_capability(Capability.MANAGE_MEMBERS)


class OrgCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=2, max_length=64, pattern=r"^[a-zA-Z0-9-]+$")
    google_domain: str | None = None


class OrgOut(BaseModel):
    id: str
    name: str
    slug: str
    google_domain: str | None
    status: str


class CurrentOrgOut(BaseModel):
    organization: OrgOut
    role: str
    permissions: dict[str, bool]
    member_count: int


class MemberOut(BaseModel):
    user_id: str
    role: str
    is_default: bool
    employment_type: str
    joined_via: str
    team_id: str | None


class UpdateRoleIn(BaseModel):
    role: Role


def member_out(m: Membership) -> MemberOut:
    return MemberOut(
        user_id=str(m.user_id),
        role=m.role.value,
        is_default=m.is_default,
        employment_type=m.employment_type,
        joined_via=m.joined_via,
        team_id=str(m.team_id) if m.team_id else None,
    )


@router.post("/organizations", response_model=OrgOut, status_code=status.HTTP_201_CREATED)
async def create_organization(
    body: OrgCreateIn, principal: CurrentUser, store: Store
) -> OrgOut:
    """Create an organization.  The caller becomes its admin."""
    try:
        org, _ = await org_service.create_organization(
            store,
            principal.user_id,
            name=body.name,
            slug=body.slug,
            google_domain=body.google_domain,
        )
    except org_service.SlugTakenError:
        raise HTTPException(status_code=409, detail="slug already taken") from None
    return OrgOut(
        id=str(org.id),
        name=org.name,
        slug=org.slug,
        google_domain=org.google_domain,
        status=org.status,
    )


@router.get("/organization", response_model=CurrentOrgOut)
async def get_current_organization(ctx: CurrentContext, store: Store) -> CurrentOrgOut:
    authorize(ctx, Capability.VIEW_ORGANIZATION)
    org = await store.organizations.get_by_id(ctx.organization_id)
    if org is None:
        raise HTTPException(status_code=404, detail="organization not found")
    members = await store.memberships.list_active_by_org(ctx.organization_id)
    return CurrentOrgOut(
        organization=OrgOut(
            id=str(org.id),
            name=org.name,
            slug=org.slug,
            google_domain=org.google_domain,
            status=org.status,
        ),
        role=ctx.role.value,
        permissions=permissions_for(ctx.role),
        member_count=len(members),
    )


@router.get("/organization/members", response_model=list[MemberOut])
async def list_members(
    ctx: Annotated[OrgContext, Depends(_view_members)], store: Store
) -> list[MemberOut]:
    members = await store.memberships.list_active_by_org(ctx.organization_id)
    return [member_out(m) for m in members]


@router.patch("/organization/members/{user_id}", response_model=MemberOut)
async def update_member_role(
    user_id: UUID,
    body: UpdateRoleIn,
    ctx: Annotated[OrgContext, Depends(_manage_members)],
    store: Store,
) -> MemberOut:
    try:
        updated = await org_service.change_role(
            store, ctx.organization_id, user_id, body.role
        )
    except org_service.MemberNotFoundError:
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND) from None
    except org_service.LastAdminError:
        raise HTTPException(
            status_code=409, detail="organization must keep at least one admin"
        ) from None
    return member_out(updated)


@router.delete(
    "/organization/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_member(
    user_id: UUID,
    ctx: Annotated[OrgContext, Depends(_manage_members)],
    store: Store,
) -> None:
    try:
        await org_service.remove_member(store, ctx.organization_id, user_id)
    except org_service.MemberNotFoundError:
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND) from None
    except org_service.LastAdminError:
        raise HTTPException(
            status_code=409, detail="organization must keep at least one admin"
        ) from None
