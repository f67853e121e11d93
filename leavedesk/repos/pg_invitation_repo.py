from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db.tables import InvitationRow
from leavedesk.models.invitation import Invitation
from leavedesk.repos.pg_scoped_repo import PgScopedRepo


class PgInvitationRepo(PgScopedRepo[Invitation]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, InvitationRow, Invitation)

    async def get_by_token_hash(self, token_hash: str) -> Invitation | None:
        # token_hash is unique, so at most one row across all organizations.
        stmt = select(InvitationRow).where(InvitationRow.token_hash == token_hash)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return self._to_model(row) if row is not None else None
