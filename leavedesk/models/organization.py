from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID, uuid4


class Role(StrEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


JOINED_VIA = ("google_domain", "invitation", "created", "request")

EMPLOYMENT_TYPES = (
    "full_time",
    "part_time",
    "contract",
    "task_contract",
    "internship",
    "temporary",
    "consultant",
)


@dataclass(frozen=True, slots=True)
class Organization:
    id: UUID
    name: str
    slug: str
    google_domain: str | None = None
    require_google_domain: bool = False
    status: str = "active"  # active|deleted

    @staticmethod
    def new(
        *, name: str, slug: str, google_domain: str | None = None
    ) -> Organization:
        return Organization(
            id=uuid4(), name=name, slug=slug, google_domain=google_domain
        )

    @property
    def is_deleted(self) -> bool:
        return self.status == "deleted"


@dataclass(frozen=True, slots=True)
class Membership:
    """One row of user_organizations: a user's standing in ONE organization.

    The role lives here and nowhere else.  A user who is admin in one
    organization and employee in another has two rows with two roles;
    nothing about either row is visible from the other organization.
    """

    user_id: UUID
    organization_id: UUID
    role: Role
    is_active: bool = True
    is_default: bool = False
    employment_type: str = "full_time"
    joined_via: str = "invitation"
    team_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class OrganizationSettings:
    organization_id: UUID
    allow_domain_join_requests: bool = True
    is_discoverable_by_domain: bool = True
    require_admin_approval_for_domain_join: bool = False
    auto_approve_verified_domains: bool = False
    default_employment_type: str = "full_time"
    require_contract_dates: bool = True
    data_retention_days: int = 365
    allow_data_export: bool = True
