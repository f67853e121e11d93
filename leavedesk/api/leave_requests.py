"""Leave request endpoints.

Every record is loaded through ``fetch_scoped``, so a leave request id from
another organization behaves exactly like an id that does not exist.
Ownership and role checks come after the organization check.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, date, datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from leavedesk.api.dependencies import CurrentContext, Store, require_capability
from leavedesk.models.leave_request import LeaveRequest
from leavedesk.models.principal import OrgContext
from leavedesk.services.authorizer import (
    Capability,
    authorize,
    can,
    ensure_owner_or,
)
from leavedesk.services.protected import fetch_scoped, scoped_add

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/leave-requests", tags=["leave-requests"])

_reviewer = require_capability(Capability.REVIEW_LEAVE)


class LeaveRequestIn(BaseModel):
    start_date: date
    end_date: date
    days_requested: int | None = Field(default=None, ge=1)
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _dates_in_order(self) -> LeaveRequestIn:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def days(self) -> int:
        if self.days_requested is not None:
            return self.days_requested
        return (self.end_date - self.start_date).days + 1


class ReviewIn(BaseModel):
    action: Literal["approve", "reject"]
    comment: str | None = Field(default=None, max_length=1000)


class LeaveRequestOut(BaseModel):
    id: str
    user_id: str
    start_date: date
    end_date: date
    days_requested: int
    reason: str | None
    status: str
    reviewed_by: str | None
    reviewed_at: int | None
    review_comment: str | None
    edited_by: str | None
    edited_at: int | None


def _out(r: LeaveRequest) -> LeaveRequestOut:
    return LeaveRequestOut(
        id=str(r.id),
        user_id=str(r.user_id),
        start_date=r.start_date,
        end_date=r.end_date,
        days_requested=r.days_requested,
        reason=r.reason,
        status=r.status,
        reviewed_by=str(r.reviewed_by) if r.reviewed_by else None,
        reviewed_at=r.reviewed_at,
        review_comment=r.review_comment,
        edited_by=str(r.edited_by) if r.edited_by else None,
        edited_at=r.edited_at,
    )


def _today() -> date:
    return datetime.now(UTC).date()


@router.get("", response_model=list[LeaveRequestOut])
async def list_leave_requests(
    ctx: CurrentContext,
    store: Store,
    scope: Annotated[Literal["own", "all"], Query()] = "own",
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[LeaveRequestOut]:
    filters: dict[str, object] = {}
    if status_filter:
        filters["status"] = status_filter
    if scope == "all":
        authorize(ctx, Capability.VIEW_ALL_LEAVE)
    else:
        authorize(ctx, Capability.VIEW_OWN_LEAVE)
        filters["user_id"] = ctx.user_id
    records = await store.leave_requests.find(ctx.organization_id, **filters)
    return [_out(r) for r in sorted(records, key=lambda r: r.start_date)]


@router.post("", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    body: LeaveRequestIn, ctx: CurrentContext, store: Store
) -> LeaveRequestOut:
    authorize(ctx, Capability.CREATE_OWN_LEAVE)
    record = LeaveRequest.new(
        organization_id=ctx.organization_id,
        user_id=ctx.user_id,
        start_date=body.start_date,
        end_date=body.end_date,
        days_requested=body.days(),
        reason=body.reason,
    )
    await scoped_add(store.leave_requests, ctx, record)
    logger.info("Leave request created id=%s user=%s", record.id, ctx.user_id)
    return _out(record)


@router.get("/{leave_id}", response_model=LeaveRequestOut)
async def get_leave_request(
    leave_id: UUID, ctx: CurrentContext, store: Store
) -> LeaveRequestOut:
    record = await fetch_scoped(store.leave_requests, ctx, leave_id)
    ensure_owner_or(ctx, record.user_id, Capability.VIEW_ALL_LEAVE)
    return _out(record)


@router.put("/{leave_id}", response_model=LeaveRequestOut)
async def edit_leave_request(
    leave_id: UUID, body: LeaveRequestIn, ctx: CurrentContext, store: Store
) -> LeaveRequestOut:
    """Edit dates or reason.

    Employees may edit their own request only before it starts; editing a
    rejected request sends it back to pending.  Reviewers may edit any
    request, and edits to someone else's request are stamped.
    """
    record = await fetch_scoped(store.leave_requests, ctx, leave_id)
    ensure_owner_or(ctx, record.user_id, Capability.EDIT_ANY_LEAVE)
    if record.status == "cancelled":
        raise HTTPException(status_code=400, detail="cancelled requests cannot be edited")

    changes: dict[str, object] = {
        "start_date": body.start_date,
        "end_date": body.end_date,
        "days_requested": body.days(),
        "reason": body.reason,
    }
    if not can(ctx, Capability.EDIT_ANY_LEAVE):
        if record.start_date <= _today():
            raise HTTPException(
                status_code=400, detail="leave that has started cannot be edited"
            )
        if record.status == "rejected":
            changes.update(
                status="pending",
                reviewed_by=None,
                reviewed_at=None,
                review_comment=None,
            )
    elif not ctx.owns(record.user_id):
        changes.update(edited_by=ctx.user_id, edited_at=int(time.time()))

    updated = await store.leave_requests.update(ctx.organization_id, leave_id, **changes)
    if updated is None:
        raise HTTPException(status_code=409, detail="leave request changed concurrently")
    return _out(updated)


@router.delete("/{leave_id}", response_model=LeaveRequestOut)
async def cancel_leave_request(
    leave_id: UUID, ctx: CurrentContext, store: Store
) -> LeaveRequestOut:
    """Cancel a request.  Owners cancel while pending; reviewers cancel any open one."""
    record = await fetch_scoped(store.leave_requests, ctx, leave_id)
    ensure_owner_or(ctx, record.user_id, Capability.CANCEL_ANY_LEAVE)
    if ctx.owns(record.user_id):
        authorize(ctx, Capability.CANCEL_OWN_LEAVE)

    reviewer = can(ctx, Capability.CANCEL_ANY_LEAVE)
    allowed = ("pending", "approved") if reviewer else ("pending",)
    if record.status not in allowed:
        raise HTTPException(
            status_code=400, detail=f"cannot cancel a {record.status} request"
        )

    updated = await store.leave_requests.update(
        ctx.organization_id, leave_id, status="cancelled"
    )
    if updated is None:
        raise HTTPException(status_code=409, detail="leave request changed concurrently")
    logger.info("Leave request cancelled id=%s by user=%s", leave_id, ctx.user_id)
    return _out(updated)


@router.post("/{leave_id}/review", response_model=LeaveRequestOut)
async def review_leave_request(
    leave_id: UUID,
    body: ReviewIn,
    ctx: Annotated[OrgContext, Depends(_reviewer)],
    store: Store,
) -> LeaveRequestOut:
    record = await fetch_scoped(store.leave_requests, ctx, leave_id)
    if record.status != "pending":
        raise HTTPException(
            status_code=400, detail="only pending requests can be reviewed"
        )
    updated = await store.leave_requests.update(
        ctx.organization_id,
        leave_id,
        status="approved" if body.action == "approve" else "rejected",
        reviewed_by=ctx.user_id,
        reviewed_at=int(time.time()),
        review_comment=body.comment,
    )
    if updated is None:
        raise HTTPException(status_code=409, detail="leave request changed concurrently")
    logger.info(
        "Leave request %s id=%s by user=%s", updated.status, leave_id, ctx.user_id
    )
    return _out(updated)
