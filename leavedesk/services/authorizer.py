"""Role-based authorization inside one resolved organization.

Roles do not inherit from each other implicitly.  ``CAPABILITY_ROLES``
spells out, for every capability, exactly which roles hold it; adding a
capability means adding a row that names its roles.

All checks take the ``OrgContext``.  The role in the context is the role
of the membership the resolver found for THIS organization; a user's
role elsewhere never enters the decision.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from uuid import UUID

from leavedesk.core.errors import AccessDenied, DenialReason, Forbidden
from leavedesk.core.metrics import ACCESS_DECISIONS
from leavedesk.models.organization import Role
from leavedesk.models.principal import OrgContext

logger = logging.getLogger(__name__)


class Capability(StrEnum):
    VIEW_OWN_LEAVE = "view_own_leave"
    CREATE_OWN_LEAVE = "create_own_leave"
    CANCEL_OWN_LEAVE = "cancel_own_leave"
    VIEW_ORGANIZATION = "view_organization"
    VIEW_TEAMS = "view_teams"

    REVIEW_LEAVE = "review_leave"
    VIEW_ALL_LEAVE = "view_all_leave"
    VIEW_MEMBERS = "view_members"
    MANAGE_TEAM_MEMBERSHIP = "manage_team_membership"
    EDIT_ANY_LEAVE = "edit_any_leave"
    CANCEL_ANY_LEAVE = "cancel_any_leave"

    MANAGE_SETTINGS = "manage_settings"
    MANAGE_INVITATIONS = "manage_invitations"
    MANAGE_EMPLOYEES = "manage_employees"
    MANAGE_MEMBERS = "manage_members"
    RUN_ADMIN_UTILITIES = "run_admin_utilities"
    MANAGE_BILLING = "manage_billing"
    DELETE_ORGANIZATION = "delete_organization"


_EVERYONE = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})
_REVIEWERS = frozenset({Role.ADMIN, Role.MANAGER})
_ADMINS = frozenset({Role.ADMIN})

CAPABILITY_ROLES: dict[Capability, frozenset[Role]] = {
    Capability.VIEW_OWN_LEAVE: _EVERYONE,
    Capability.CREATE_OWN_LEAVE: _EVERYONE,
    Capability.CANCEL_OWN_LEAVE: _EVERYONE,
    Capability.VIEW_ORGANIZATION: _EVERYONE,
    Capability.VIEW_TEAMS: _EVERYONE,
    Capability.REVIEW_LEAVE: _REVIEWERS,
    Capability.VIEW_ALL_LEAVE: _REVIEWERS,
    Capability.VIEW_MEMBERS: _REVIEWERS,
    Capability.MANAGE_TEAM_MEMBERSHIP: _REVIEWERS,
    Capability.EDIT_ANY_LEAVE: _REVIEWERS,
    Capability.CANCEL_ANY_LEAVE: _REVIEWERS,
    Capability.MANAGE_SETTINGS: _ADMINS,
    Capability.MANAGE_INVITATIONS: _ADMINS,
    Capability.MANAGE_EMPLOYEES: _ADMINS,
    Capability.MANAGE_MEMBERS: _ADMINS,
    Capability.RUN_ADMIN_UTILITIES: _ADMINS,
    Capability.MANAGE_BILLING: _ADMINS,
    Capability.DELETE_ORGANIZATION: _ADMINS,
}


def can(ctx: OrgContext, capability: Capability) -> bool:
    # Unknown capabilities map to the empty set: deny.
    return ctx.role in CAPABILITY_ROLES.get(capability, frozenset())


def authorize(ctx: OrgContext, capability: Capability) -> None:
    """Raise Forbidden unless the context's role holds ``capability``."""
    if not can(ctx, capability):
        logger.warning(
            "Access denied: user=%s role=%s lacks capability=%s org=%s",
            ctx.user_id,
            ctx.role,
            capability,
            ctx.organization_id,
        )
        ACCESS_DECISIONS.labels(outcome="deny", kind=Forbidden.kind).inc()
        raise Forbidden(str(capability))


def ensure_same_organization(ctx: OrgContext, resource_org_id: UUID) -> None:
    if resource_org_id != ctx.organization_id:
        logger.warning(
            "Access denied: user=%s org=%s touched resource of another organization",
            ctx.user_id,
            ctx.organization_id,
        )
        ACCESS_DECISIONS.labels(outcome="deny", kind=AccessDenied.kind).inc()
        raise AccessDenied(DenialReason.ORGANIZATION_MISMATCH)


def ensure_owner_or(ctx: OrgContext, owner_id: UUID, capability: Capability) -> None:
    """Pass when the caller owns the record or holds ``capability``."""
    if ctx.owns(owner_id):
        return
    authorize(ctx, capability)


def permissions_for(role: Role) -> dict[str, bool]:
    """Summary flags for clients deciding what to render."""
    role_ctx = OrgContext(user_id=UUID(int=0), organization_id=UUID(int=0), role=role)
    return {
        "canManageUsers": can(role_ctx, Capability.MANAGE_MEMBERS),
        "canManageTeams": can(role_ctx, Capability.MANAGE_TEAM_MEMBERSHIP),
        "canApproveLeave": can(role_ctx, Capability.REVIEW_LEAVE),
        "canViewReports": can(role_ctx, Capability.VIEW_ALL_LEAVE),
        "canManageSettings": can(role_ctx, Capability.MANAGE_SETTINGS),
    }
