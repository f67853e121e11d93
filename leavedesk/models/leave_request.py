from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

LEAVE_STATUSES = ("pending", "approved", "rejected", "cancelled")


@dataclass(frozen=True, slots=True)
class LeaveRequest:
    id: UUID
    organization_id: UUID
    user_id: UUID
    start_date: date
    end_date: date
    days_requested: int
    reason: str | None = None
    status: str = "pending"  # pending|approved|rejected|cancelled
    reviewed_by: UUID | None = None
    reviewed_at: int | None = None
    review_comment: str | None = None
    edited_by: UUID | None = None
    edited_at: int | None = None

    @staticmethod
    def new(
        *,
        organization_id: UUID,
        user_id: UUID,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str | None = None,
    ) -> LeaveRequest:
        return LeaveRequest(
            id=uuid4(),
            organization_id=organization_id,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            reason=reason,
        )
