"""Access-control error taxonomy.

Every failure the context resolver, the role authorizer, or the
protected-operation helpers can produce is one of these exceptions.
Each carries:

  kind    the externally visible category (fixed per class)
  reason  an internal sub-case, logged but never sent to the caller

The HTTP layer maps ``kind`` to a status code and a fixed message via
``PUBLIC_ERRORS``; ``reason`` stays server-side.  That is what makes
"organization does not exist", "not a member", "membership revoked" and
"resource lives in another organization" indistinguishable on the wire.
"""

from __future__ import annotations

from enum import StrEnum


class DenialReason(StrEnum):
    NOT_A_MEMBER = "not_a_member"
    INVALID_ORGANIZATION_ID = "invalid_organization_id"
    ORGANIZATION_MISMATCH = "organization_mismatch"
    RESOURCE_NOT_FOUND = "resource_not_found"
    TIMEOUT = "timeout"
    INVALID_INVITATION = "invalid_invitation"


class AccessError(Exception):
    kind: str = "access_error"

    def __init__(self, reason: str = "", *, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(reason or self.kind)


class Unauthenticated(AccessError):
    kind = "unauthenticated"


class NoOrganizationContext(AccessError):
    """Authenticated, but nothing to resolve: no hint and no default membership."""

    kind = "no_organization_context"


class AccessDenied(AccessError):
    """Umbrella for not-a-member, bad org id, org mismatch and revoked membership."""

    kind = "access_denied"


class Forbidden(AccessError):
    """Organization resolved, role lacks the capability."""

    kind = "forbidden"


class InvalidInput(AccessError):
    """Malformed input caught before any membership lookup.

    ``detail`` is caller-facing and must only describe the caller's own input.
    """

    kind = "invalid_input"


class InternalFailure(AccessError):
    kind = "internal"


# kind -> (HTTP status, public message)
PUBLIC_ERRORS: dict[str, tuple[int, str]] = {
    Unauthenticated.kind: (401, "Not authenticated"),
    NoOrganizationContext.kind: (400, "No organization context"),
    AccessDenied.kind: (403, "Organization access denied"),
    Forbidden.kind: (403, "Insufficient permissions"),
    InvalidInput.kind: (422, "Invalid input"),
    InternalFailure.kind: (500, "Internal server error"),
}


def public_error(err: AccessError) -> tuple[int, str]:
    """Return the (status, message) pair a caller is allowed to see."""
    status_code, message = PUBLIC_ERRORS.get(err.kind, PUBLIC_ERRORS["internal"])
    if isinstance(err, InvalidInput) and err.detail:
        message = err.detail
    return status_code, message
