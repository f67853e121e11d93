"""SQLAlchemy implementation of UserRepo over the profiles table."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db.tables import ProfileRow
from leavedesk.models.user import User
from leavedesk.repos.user_repo import EmailTakenError


class PgUserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        row = await self._session.get(ProfileRow, user_id)
        return _to_user(row) if row is not None else None

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(ProfileRow).where(ProfileRow.email == email.strip().lower())
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _to_user(row) if row is not None else None

    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        ids = list(user_ids)
        if not ids:
            return {}
        stmt = select(ProfileRow).where(ProfileRow.id.in_(ids))
        rows = (await self._session.execute(stmt)).scalars().all()
        return {row.id: _to_user(row) for row in rows}

    async def add(self, user: User) -> None:
        if await self.get_by_email(user.email) is not None:
            raise EmailTakenError(user.email)
        self._session.add(
            ProfileRow(id=user.id, email=user.email, full_name=user.full_name)
        )
        await self._session.flush()


def _to_user(row: ProfileRow) -> User:
    return User(id=row.id, email=row.email, full_name=row.full_name or "")
