"""JWT creation and validation (ES256).

Two token kinds share one key pair and are separated by audience:

- access tokens: the bearer credential that identifies the user.  They say
  nothing about organizations or roles.
- active-organization pointers: the value of the ``active-organization-id``
  cookie.  A pointer names the organization a browser session last switched
  to.  It is a hint, not a grant; the resolver re-checks membership on
  every request.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from leavedesk.core.config import SETTINGS

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# Dev/test: generate an ephemeral EC key pair on import.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "leavedesk"
AUDIENCE = "leavedesk-api"
ACCESS_TOKEN_TTL_MIN = 15


def create_access_token(*, sub: str, email: str = "") -> str:
    """Build and sign an access token: sub, email, iss, aud, exp, iat, jti."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "email": email,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256.  Raises jwt.InvalidTokenError (or a subclass
    such as jwt.ExpiredSignatureError) on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )


# ---------------------------------------------------------------------------
# Active-organization pointer (cookie value)
# ---------------------------------------------------------------------------
# Same key pair, different audience, so an access token can never be
# replayed as a pointer or the other way round.  The pointer is bound to
# the user it was issued to: a cookie copied into another user's browser
# does not decode for them.

POINTER_AUDIENCE = "leavedesk-active-org"


def create_org_pointer(*, sub: str, organization_id: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "org": organization_id,
        "iss": ISSUER,
        "aud": POINTER_AUDIENCE,
        "exp": now + timedelta(days=SETTINGS.org_cookie_ttl_days),
        "iat": now,
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_org_pointer(token: str, *, sub: str) -> str:
    """Return the organization id carried by a pointer issued to ``sub``.

    Raises jwt.InvalidTokenError when the signature, audience or expiry
    fails, or when the pointer belongs to a different user.
    """
    payload = jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=POINTER_AUDIENCE,
        options={"require": ["sub", "org", "exp", "iat"]},
    )
    if payload["sub"] != sub:
        raise jwt.InvalidTokenError("pointer issued to another user")
    return str(payload["org"])
