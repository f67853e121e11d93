"""Organization context resolution.

Turns (authenticated user, optional organization hints) into the one
``OrgContext`` a request runs under, or into a typed denial.

Hint priority, highest first:

1. an explicit organization id (path parameter or X-Organization-Id header)
2. the active-organization pointer from the session cookie
3. the user's active default membership

The first hint that is present is the candidate; lower-priority hints are
not consulted even when the candidate turns out to be unusable.  In
particular a pointer to an organization the user has since been removed
from fails the request instead of quietly landing on the default: the
client has to switch again.

Every call reads the membership store.  Nothing is cached between
requests, so a revoked membership stops resolving on the very next call.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from leavedesk.core.config import SETTINGS
from leavedesk.core.errors import (
    AccessDenied,
    AccessError,
    DenialReason,
    InternalFailure,
    NoOrganizationContext,
    Unauthenticated,
)
from leavedesk.core.metrics import ACCESS_DECISIONS
from leavedesk.models.organization import Role
from leavedesk.models.principal import OrgContext
from leavedesk.repos.membership_repo import MembershipRepo
from leavedesk.repos.org_repo import OrgRepo

logger = logging.getLogger(__name__)


def parse_organization_id(raw: str | UUID) -> UUID:
    """Parse an organization id hint; a malformed one is a denial, not a 400."""
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(raw.strip())
    except ValueError:
        raise AccessDenied(DenialReason.INVALID_ORGANIZATION_ID) from None


async def resolve_context(
    memberships: MembershipRepo,
    user_id: UUID | None,
    *,
    explicit_org_id: str | UUID | None = None,
    pointer_org_id: str | UUID | None = None,
    email: str = "",
    timeout: float | None = None,
) -> OrgContext:
    """Resolve the organization context for one request.

    Raises Unauthenticated, NoOrganizationContext, AccessDenied or
    InternalFailure.  A lookup slower than ``timeout`` seconds (default
    RESOLVE_TIMEOUT_SECONDS) is denied.
    """
    if user_id is None:
        err: AccessError = Unauthenticated("no authenticated user")
        ACCESS_DECISIONS.labels(outcome="deny", kind=err.kind).inc()
        raise err

    limit = SETTINGS.resolve_timeout_seconds if timeout is None else timeout
    try:
        async with asyncio.timeout(limit):
            ctx = await _resolve(
                memberships, user_id, explicit_org_id, pointer_org_id, email
            )
    except TimeoutError:
        logger.warning(
            "Organization context denied: user=%s reason=%s after %.2fs",
            user_id,
            DenialReason.TIMEOUT,
            limit,
        )
        err = AccessDenied(DenialReason.TIMEOUT)
        ACCESS_DECISIONS.labels(outcome="deny", kind=err.kind).inc()
        raise err from None
    except AccessError as exc:
        ACCESS_DECISIONS.labels(outcome="deny", kind=exc.kind).inc()
        raise
    except Exception:
        logger.exception("Membership lookup failed for user=%s", user_id)
        err = InternalFailure("membership store error")
        ACCESS_DECISIONS.labels(outcome="deny", kind=err.kind).inc()
        raise err from None

    ACCESS_DECISIONS.labels(outcome="allow", kind="ok").inc()
    return ctx


async def _resolve(
    memberships: MembershipRepo,
    user_id: UUID,
    explicit_org_id: str | UUID | None,
    pointer_org_id: str | UUID | None,
    email: str,
) -> OrgContext:
    if _present(explicit_org_id):
        source, candidate = "explicit", explicit_org_id
    elif _present(pointer_org_id):
        source, candidate = "pointer", pointer_org_id
    else:
        default = await memberships.get_default(user_id)
        if default is None:
            logger.warning(
                "No organization context: user=%s has no hint and no default",
                user_id,
            )
            raise NoOrganizationContext("no hint and no default membership")
        logger.debug(
            "Resolved default organization=%s for user=%s",
            default.organization_id,
            user_id,
        )
        return OrgContext(
            user_id=user_id,
            organization_id=default.organization_id,
            role=Role(default.role),
            email=email,
        )

    try:
        organization_id = parse_organization_id(candidate)  # type: ignore[arg-type]
    except AccessDenied:
        logger.warning(
            "Organization context denied: user=%s source=%s reason=%s",
            user_id,
            source,
            DenialReason.INVALID_ORGANIZATION_ID,
        )
        raise

    membership = await memberships.get_active(user_id, organization_id)
    if membership is None:
        logger.warning(
            "Organization context denied: user=%s org=%s source=%s reason=%s",
            user_id,
            organization_id,
            source,
            DenialReason.NOT_A_MEMBER,
        )
        raise AccessDenied(DenialReason.NOT_A_MEMBER)

    logger.debug(
        "Resolved organization=%s role=%s for user=%s via %s",
        organization_id,
        membership.role,
        user_id,
        source,
    )
    return OrgContext(
        user_id=user_id,
        organization_id=organization_id,
        role=Role(membership.role),
        email=email,
    )


def _present(hint: str | UUID | None) -> bool:
    if hint is None:
        return False
    if isinstance(hint, str):
        return bool(hint.strip())
    return True


# ---------------------------------------------------------------------------
# Workspace listing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Workspace:
    organization_id: UUID
    name: str
    slug: str
    role: Role
    is_default: bool


async def list_workspaces(
    memberships: MembershipRepo, orgs: OrgRepo, user_id: UUID
) -> list[Workspace]:
    """The user's active workspaces, default first."""
    workspaces: list[Workspace] = []
    for m in await memberships.list_active_by_user(user_id):
        org = await orgs.get_by_id(m.organization_id)
        if org is None or org.is_deleted:
            continue
        workspaces.append(
            Workspace(
                organization_id=org.id,
                name=org.name,
                slug=org.slug,
                role=Role(m.role),
                is_default=m.is_default,
            )
        )
    return workspaces
