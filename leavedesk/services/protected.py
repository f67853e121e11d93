"""Helpers every organization-scoped route goes through.

``fetch_scoped`` is the only way routes load a record by id.  It queries
with the context's organization id and then re-checks the record's own
``organization_id``; a record that does not exist and a record that lives
in another organization produce the same AccessDenied, so callers cannot
tell which ids exist in other tenants.
"""

from __future__ import annotations

import logging
from uuid import UUID

from leavedesk.core.errors import AccessDenied, DenialReason, InternalFailure
from leavedesk.core.metrics import ACCESS_DECISIONS
from leavedesk.models.principal import OrgContext
from leavedesk.repos.scoped_repo import ScopedRepo, T
from leavedesk.services.authorizer import ensure_same_organization

logger = logging.getLogger(__name__)


async def fetch_scoped(repo: ScopedRepo[T], ctx: OrgContext, record_id: UUID) -> T:
    try:
        record = await repo.get(ctx.organization_id, record_id)
    except Exception:
        logger.exception(
            "Scoped fetch failed: org=%s record=%s", ctx.organization_id, record_id
        )
        raise InternalFailure("store error") from None

    if record is None:
        logger.warning(
            "Access denied: user=%s org=%s record=%s reason=%s",
            ctx.user_id,
            ctx.organization_id,
            record_id,
            DenialReason.RESOURCE_NOT_FOUND,
        )
        ACCESS_DECISIONS.labels(outcome="deny", kind=AccessDenied.kind).inc()
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND)

    ensure_same_organization(ctx, record.organization_id)
    return record


async def scoped_add(repo: ScopedRepo[T], ctx: OrgContext, record: T) -> T:
    """Insert a record that must belong to the context's organization."""
    ensure_same_organization(ctx, record.organization_id)
    try:
        await repo.add(record)
    except Exception:
        logger.exception("Scoped insert failed: org=%s", ctx.organization_id)
        raise InternalFailure("store error") from None
    return record
