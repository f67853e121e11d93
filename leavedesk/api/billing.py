"""Seat usage for billing.  Admin only; no payment provider is called."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from leavedesk.api.dependencies import Store, require_capability
from leavedesk.models.principal import OrgContext
from leavedesk.services.authorizer import Capability

router = APIRouter(prefix="/v1/billing", tags=["billing"])

FREE_SEATS = 3

_manage_billing = require_capability(Capability.MANAGE_BILLING)


class SeatsOut(BaseModel):
    current_employees: int
    pending_invitations: int
    free_seats: int
    paid_seats: int
    total_seats: int
    available_seats: int


def calculate_seats(current_employees: int, pending_invitations: int) -> SeatsOut:
    """Up to FREE_SEATS users are free; past that every seat is paid."""
    paid = current_employees if current_employees > FREE_SEATS else 0
    total = paid if paid > 0 else FREE_SEATS
    return SeatsOut(
        current_employees=current_employees,
        pending_invitations=pending_invitations,
        free_seats=FREE_SEATS,
        paid_seats=paid,
        total_seats=total,
        available_seats=max(0, total - current_employees - pending_invitations),
    )


@router.get("/seats", response_model=SeatsOut)
async def get_seats(
    ctx: Annotated[OrgContext, Depends(_manage_billing)], store: Store
) -> SeatsOut:
    members = await store.memberships.list_active_by_org(ctx.organization_id)
    pending = await store.invitations.count(ctx.organization_id, status="pending")
    return calculate_seats(len(members), pending)
