from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from leavedesk.api.ratelimit import rate_limiter
from leavedesk.main import app
from leavedesk.models.leave_request import LeaveRequest
from leavedesk.models.organization import Membership, Organization, Role
from leavedesk.models.user import User
from leavedesk.repos.store import memory_store, reset_memory_store
from leavedesk.services import token_service


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Fresh in-memory repositories for every test."""
    reset_memory_store()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(rate_limiter, "_buckets"):
        rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(user_id: UUID | str, email: str = "") -> str:
    """Create a valid ES256 access token for testing."""
    return token_service.create_access_token(sub=str(user_id), email=email)


def auth(user_id: UUID | str | None, **extra: str) -> dict[str, str]:
    """Authorization header for ``user_id`` plus any extra headers."""
    headers = dict(extra)
    if user_id is not None:
        headers["Authorization"] = f"Bearer {mint_token(user_id)}"
    return headers


# ---------------------------------------------------------------------------
# Seed helpers (write straight into the in-memory store)
# ---------------------------------------------------------------------------


def create_test_user(email: str, full_name: str = "") -> User:
    user = User.new(email=email, full_name=full_name)
    asyncio.run(memory_store.users.add(user))
    return user


def create_test_org(slug: str = "test-org") -> Organization:
    org = Organization.new(name=slug.replace("-", " ").title(), slug=slug)
    asyncio.run(memory_store.organizations.add(org))
    return org


def add_test_member(
    organization_id: UUID,
    user_id: UUID,
    role: Role | str = Role.EMPLOYEE,
    *,
    is_default: bool = False,
    is_active: bool = True,
) -> Membership:
    m = Membership(
        user_id=user_id,
        organization_id=organization_id,
        role=Role(role),
        is_default=is_default,
        is_active=is_active,
    )
    asyncio.run(memory_store.memberships.add(m))
    return m


def deactivate_member(organization_id: UUID, user_id: UUID) -> None:
    asyncio.run(memory_store.memberships.deactivate(user_id, organization_id))


def add_test_leave(
    organization_id: UUID,
    user_id: UUID,
    *,
    starts_in_days: int = 10,
    length_days: int = 2,
    status: str = "pending",
) -> LeaveRequest:
    start = datetime.now(UTC).date() + timedelta(days=starts_in_days)
    record = LeaveRequest.new(
        organization_id=organization_id,
        user_id=user_id,
        start_date=start,
        end_date=start + timedelta(days=length_days - 1),
        days_requested=length_days,
    )
    if status != "pending":
        record = replace(record, status=status)
    asyncio.run(memory_store.leave_requests.add(record))
    return record


def get_membership(organization_id: UUID, user_id: UUID) -> Membership | None:
    return asyncio.run(memory_store.memberships.get(user_id, organization_id))
