"""Switching the active organization of a session.

Switching never changes what a user may do: it only moves the pointer that
the resolver reads next time.  The target must be a valid organization id
and the user must hold an active membership there, otherwise nothing is
issued and the caller keeps whatever pointer it had.
"""

from __future__ import annotations

import logging
from uuid import UUID

from leavedesk.core.errors import (
    AccessDenied,
    AccessError,
    DenialReason,
    InternalFailure,
    InvalidInput,
)
from leavedesk.core.metrics import WORKSPACE_SWITCHES
from leavedesk.repos.membership_repo import MembershipRepo
from leavedesk.services import token_service

logger = logging.getLogger(__name__)


def _parse_target(target: str | UUID) -> UUID:
    if isinstance(target, UUID):
        return target
    try:
        return UUID(str(target).strip())
    except ValueError:
        raise InvalidInput(
            "invalid organization_id", detail="organization_id must be a UUID"
        ) from None


async def _require_active_membership(
    memberships: MembershipRepo, user_id: UUID, organization_id: UUID
) -> None:
    try:
        membership = await memberships.get_active(user_id, organization_id)
    except Exception:
        logger.exception("Membership lookup failed for user=%s", user_id)
        raise InternalFailure("membership store error") from None
    if membership is None:
        logger.warning(
            "Switch rejected: user=%s org=%s reason=%s",
            user_id,
            organization_id,
            DenialReason.NOT_A_MEMBER,
        )
        raise AccessDenied(DenialReason.NOT_A_MEMBER)


async def switch_active_organization(
    memberships: MembershipRepo, user_id: UUID, target: str | UUID
) -> tuple[UUID, str]:
    """Validate the target and return its parsed id with a freshly signed pointer.

    Raises InvalidInput for a malformed id and AccessDenied when the user has
    no active membership in the target.  Calling it twice with the same
    target is harmless; no membership row is written.
    """
    try:
        organization_id = _parse_target(target)
        await _require_active_membership(memberships, user_id, organization_id)
    except AccessError:
        WORKSPACE_SWITCHES.labels(result="rejected").inc()
        raise

    WORKSPACE_SWITCHES.labels(result="switched").inc()
    logger.info("Workspace switched: user=%s org=%s", user_id, organization_id)
    pointer = token_service.create_org_pointer(
        sub=str(user_id), organization_id=str(organization_id)
    )
    return organization_id, pointer


async def set_default_organization(
    memberships: MembershipRepo, user_id: UUID, target: str | UUID
) -> UUID:
    """Make ``target`` the user's default organization.

    The swap of the default flag is atomic in every repo implementation, so
    a concurrent resolve sees either the old default or the new one.
    """
    organization_id = _parse_target(target)
    await _require_active_membership(memberships, user_id, organization_id)
    try:
        changed = await memberships.set_default(user_id, organization_id)
    except Exception:
        logger.exception("Setting default organization failed for user=%s", user_id)
        raise InternalFailure("membership store error") from None
    if not changed:
        # Membership revoked between the check and the write.
        raise AccessDenied(DenialReason.NOT_A_MEMBER)
    logger.info("Default organization set: user=%s org=%s", user_id, organization_id)
    return organization_id
