from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from uuid import UUID, uuid4

INVITATION_TTL_SECONDS = 7 * 24 * 3600


def hash_invitation_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


@dataclass(frozen=True, slots=True)
class Invitation:
    id: UUID
    organization_id: UUID
    email: str
    role: str
    invited_by: UUID
    expires_at: int
    token_hash: str
    status: str = "pending"  # pending|accepted|cancelled|expired

    @staticmethod
    def new(
        *,
        organization_id: UUID,
        email: str,
        role: str,
        invited_by: UUID,
        now: int,
    ) -> tuple[Invitation, str]:
        """Build an invitation and return it with the raw token.

        Only the SHA-256 of the token is stored; the raw value goes into the
        invitation email and is never persisted.
        """
        token = secrets.token_urlsafe(32)
        invitation = Invitation(
            id=uuid4(),
            organization_id=organization_id,
            email=email.strip().lower(),
            role=role,
            invited_by=invited_by,
            expires_at=now + INVITATION_TTL_SECONDS,
            token_hash=hash_invitation_token(token),
        )
        return invitation, token

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at
