"""Organization lifecycle and membership management.

These functions run after the request has been resolved and authorized;
they enforce business rules only (slug uniqueness, the last-admin guard,
soft deletion).  The exception is accept_invitation, where the invitation
token stands in for the organization context.  Routes turn the exceptions
below into 404/409 responses.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any
from uuid import UUID

from leavedesk.core.errors import AccessDenied, DenialReason
from leavedesk.models.invitation import Invitation, hash_invitation_token
from leavedesk.models.organization import (
    EMPLOYMENT_TYPES,
    Membership,
    Organization,
    OrganizationSettings,
    Role,
)
from leavedesk.repos.store import DataStore

logger = logging.getLogger(__name__)


class SlugTakenError(Exception):
    pass


class AlreadyMemberError(Exception):
    pass


class MemberNotFoundError(Exception):
    pass


class LastAdminError(Exception):
    """The change would leave the organization without an active admin."""


async def create_organization(
    store: DataStore,
    creator_id: UUID,
    *,
    name: str,
    slug: str,
    google_domain: str | None = None,
) -> tuple[Organization, Membership]:
    """Create an organization with the creator as its first admin.

    The new membership becomes the creator's default only when they have no
    default yet; creating a second organization does not move it.
    """
    slug = slug.strip().lower()
    if await store.organizations.get_by_slug(slug) is not None:
        logger.warning("Rejected duplicate organization slug=%s", slug)
        raise SlugTakenError(slug)

    org = Organization.new(name=name.strip(), slug=slug, google_domain=google_domain)
    await store.organizations.add(org)

    has_default = await store.memberships.get_default(creator_id) is not None
    membership = Membership(
        user_id=creator_id,
        organization_id=org.id,
        role=Role.ADMIN,
        is_default=not has_default,
        joined_via="created",
    )
    await store.memberships.add(membership)
    await store.settings.save(OrganizationSettings(organization_id=org.id))
    logger.info("Created organization id=%s slug=%s by user=%s", org.id, slug, creator_id)
    return org, membership


async def get_settings(store: DataStore, organization_id: UUID) -> OrganizationSettings:
    """Return the organization's settings, creating the defaults on first access."""
    current = await store.settings.get(organization_id)
    if current is not None:
        return current
    current = OrganizationSettings(organization_id=organization_id)
    await store.settings.save(current)
    logger.info("Created default settings for org=%s", organization_id)
    return current


async def update_settings(
    store: DataStore, organization_id: UUID, **changes: Any
) -> OrganizationSettings:
    if "default_employment_type" in changes and (
        changes["default_employment_type"] not in EMPLOYMENT_TYPES
    ):
        raise ValueError("unknown employment type")
    if changes.get("data_retention_days", 1) < 1:
        raise ValueError("data_retention_days must be positive")
    updated = replace(await get_settings(store, organization_id), **changes)
    await store.settings.save(updated)
    return updated


async def add_member(
    store: DataStore,
    organization_id: UUID,
    user_id: UUID,
    role: Role,
    *,
    joined_via: str = "invitation",
    employment_type: str | None = None,
) -> Membership:
    """Add a user to the organization, or bring back a revoked membership."""
    existing = await store.memberships.get(user_id, organization_id)
    if existing is not None and existing.is_active:
        raise AlreadyMemberError(str(user_id))
    if existing is not None:
        revived = await store.memberships.reactivate(user_id, organization_id, role)
        if revived is None:
            raise AlreadyMemberError(str(user_id))
        logger.info("Reactivated member user=%s org=%s", user_id, organization_id)
        return revived

    if employment_type is None:
        employment_type = (
            await get_settings(store, organization_id)
        ).default_employment_type
    membership = Membership(
        user_id=user_id,
        organization_id=organization_id,
        role=role,
        is_default=await store.memberships.get_default(user_id) is None,
        employment_type=employment_type,
        joined_via=joined_via,
    )
    await store.memberships.add(membership)
    logger.info(
        "Added member user=%s org=%s role=%s", user_id, organization_id, role
    )
    return membership


async def _guard_last_admin(
    store: DataStore, organization_id: UUID, target: Membership
) -> None:
    if target.role != Role.ADMIN:
        return
    admins = [
        m
        for m in await store.memberships.list_active_by_org(organization_id)
        if m.role == Role.ADMIN
    ]
    if len(admins) <= 1:
        logger.warning(
            "Rejected change to last admin user=%s org=%s",
            target.user_id,
            organization_id,
        )
        raise LastAdminError(str(target.user_id))


async def change_role(
    store: DataStore, organization_id: UUID, user_id: UUID, role: Role
) -> Membership:
    target = await store.memberships.get_active(user_id, organization_id)
    if target is None:
        raise MemberNotFoundError(str(user_id))
    if role != Role.ADMIN:
        await _guard_last_admin(store, organization_id, target)
    updated = await store.memberships.update_role(user_id, organization_id, role)
    if updated is None:
        raise MemberNotFoundError(str(user_id))
    logger.info(
        "Changed role user=%s org=%s %s->%s",
        user_id,
        organization_id,
        target.role,
        role,
    )
    return updated


async def remove_member(store: DataStore, organization_id: UUID, user_id: UUID) -> None:
    """Deactivate a membership.  The row stays so it can be reactivated."""
    target = await store.memberships.get_active(user_id, organization_id)
    if target is None:
        raise MemberNotFoundError(str(user_id))
    await _guard_last_admin(store, organization_id, target)
    await store.memberships.deactivate(user_id, organization_id)
    logger.info("Deactivated member user=%s org=%s", user_id, organization_id)


async def delete_organization(store: DataStore, organization_id: UUID) -> int:
    """Soft-delete the organization and revoke every membership in it.

    Returns the number of memberships revoked.  After this no member can
    resolve into the organization, whatever pointer or default they hold.
    """
    await store.organizations.mark_deleted(organization_id)
    revoked = await store.memberships.deactivate_organization(organization_id)
    logger.info(
        "Deleted organization id=%s, revoked %d memberships", organization_id, revoked
    )
    return revoked


async def accept_invitation(
    store: DataStore,
    user_id: UUID,
    email: str,
    token: str,
    *,
    now: int,
) -> tuple[Invitation, Organization, Membership]:
    """Join the organization an invitation token was issued for.

    The token stands in for the organization context the caller does not
    have yet.  An unknown token, a used, cancelled or expired invitation,
    an invitation addressed to another email and an invitation into a
    deleted organization all raise the same AccessDenied; the specific
    cause is only logged.  Raises AlreadyMemberError when the caller is
    already an active member.
    """
    invitation = await store.invitations.get_by_token_hash(hash_invitation_token(token))
    cause = _invitation_rejection(invitation, email, now)
    org = None
    if invitation is not None and cause is None:
        org = await store.organizations.get_by_id(invitation.organization_id)
        if org is None or org.is_deleted:
            cause = "organization deleted"
    if cause is not None or invitation is None or org is None:
        logger.warning(
            "Invitation rejected: user=%s reason=%s cause=%s",
            user_id,
            DenialReason.INVALID_INVITATION,
            cause,
        )
        raise AccessDenied(DenialReason.INVALID_INVITATION)

    membership = await add_member(
        store,
        invitation.organization_id,
        user_id,
        Role(invitation.role),
        joined_via="invitation",
    )
    accepted = await store.invitations.update(
        invitation.organization_id, invitation.id, status="accepted"
    )
    if accepted is None:
        raise AccessDenied(DenialReason.INVALID_INVITATION)
    logger.info(
        "Invitation accepted id=%s org=%s user=%s role=%s",
        invitation.id,
        invitation.organization_id,
        user_id,
        invitation.role,
    )
    return accepted, org, membership


def _invitation_rejection(
    invitation: Invitation | None, email: str, now: int
) -> str | None:
    if invitation is None:
        return "unknown token"
    if invitation.status != "pending":
        return f"invitation {invitation.status}"
    if invitation.is_expired(now):
        return "invitation expired"
    if email.strip().lower() != invitation.email:
        return "email mismatch"
    return None
