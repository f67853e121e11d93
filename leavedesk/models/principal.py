from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from leavedesk.models.organization import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated bearer JWT.

    Carries who the caller is and nothing about where they belong.
    Organization standing is resolved per request into an OrgContext.
    """

    user_id: UUID
    email: str = ""


@dataclass(frozen=True, slots=True)
class OrgContext:
    """The resolved (user, organization, role) triple for ONE request.

    Produced once by the context resolver and passed explicitly to every
    authorization check and scoped query downstream.  Nothing later in the
    request re-derives the organization from another signal.
    """

    user_id: UUID
    organization_id: UUID
    role: Role
    email: str = ""

    def owns(self, owner_id: UUID) -> bool:
        return self.user_id == owner_id
