"""Invitations: an organization-scoped table with one cross-organization read.

The person accepting an invitation is not a member yet, so there is no
organization context to scope the lookup by.  The raw token is the
capability instead: ``get_by_token_hash`` finds the one invitation whose
stored hash matches, in whatever organization it lives.
"""

from __future__ import annotations

from typing import Protocol

from leavedesk.models.invitation import Invitation
from leavedesk.repos.scoped_repo import InMemoryScopedRepo, ScopedRepo


class InvitationRepo(ScopedRepo[Invitation], Protocol):
    async def get_by_token_hash(self, token_hash: str) -> Invitation | None: ...


class InMemoryInvitationRepo(InMemoryScopedRepo[Invitation]):
    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        for invitation in self._store.values():
            if invitation.token_hash == token_hash:
                return invitation
        return None
