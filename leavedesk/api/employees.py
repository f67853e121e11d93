"""Employee directory of the current organization.

An employee is a user with an active membership here.  Looking up a user
who is not a member of this organization is denied exactly like reading
another organization's leave request.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from leavedesk.api.dependencies import CurrentContext, Store, require_capability
from leavedesk.core.errors import AccessDenied, DenialReason
from leavedesk.models.organization import EMPLOYMENT_TYPES, Membership, Role
from leavedesk.models.principal import OrgContext
from leavedesk.models.user import User
from leavedesk.services import organizations as org_service
from leavedesk.services.authorizer import Capability, ensure_owner_or

router = APIRouter(prefix="/v1/employees", tags=["employees"])

_view_members = require_capability(Capability.VIEW_MEMBERS)
_manage_employees = require_capability(Capability.MANAGE_EMPLOYEES)


class EmployeeOut(BaseModel):
    user_id: str
    email: str
    full_name: str
    role: str
    employment_type: str
    team_id: str | None


class EmployeeAddIn(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    role: Role = Role.EMPLOYEE
    employment_type: str | None = None


def _employee_out(m: Membership, user: User | None) -> EmployeeOut:
    return EmployeeOut(
        user_id=str(m.user_id),
        email=user.email if user else "",
        full_name=user.full_name if user else "",
        role=m.role.value,
        employment_type=m.employment_type,
        team_id=str(m.team_id) if m.team_id else None,
    )


@router.get("", response_model=list[EmployeeOut])
async def list_employees(
    ctx: Annotated[OrgContext, Depends(_view_members)], store: Store
) -> list[EmployeeOut]:
    members = await store.memberships.list_active_by_org(ctx.organization_id)
    profiles = await store.users.get_many(m.user_id for m in members)
    return [_employee_out(m, profiles.get(m.user_id)) for m in members]


@router.get("/{user_id}", response_model=EmployeeOut)
async def get_employee(user_id: UUID, ctx: CurrentContext, store: Store) -> EmployeeOut:
    """Members may read their own entry; reviewers and admins read anyone's."""
    ensure_owner_or(ctx, user_id, Capability.VIEW_MEMBERS)
    membership = await store.memberships.get_active(user_id, ctx.organization_id)
    if membership is None:
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND)
    return _employee_out(membership, await store.users.get_by_id(user_id))


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def add_employee(
    body: EmployeeAddIn,
    ctx: Annotated[OrgContext, Depends(_manage_employees)],
    store: Store,
) -> EmployeeOut:
    """Add an existing user to this organization by email."""
    if body.employment_type is not None and body.employment_type not in EMPLOYMENT_TYPES:
        raise HTTPException(status_code=400, detail="unknown employment type")
    user = await store.users.get_by_email(body.email)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    try:
        membership = await org_service.add_member(
            store,
            ctx.organization_id,
            user.id,
            body.role,
            employment_type=body.employment_type,
        )
    except org_service.AlreadyMemberError:
        raise HTTPException(status_code=409, detail="already a member") from None
    return _employee_out(membership, user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_employee(
    user_id: UUID,
    ctx: Annotated[OrgContext, Depends(_manage_employees)],
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
