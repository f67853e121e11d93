"""SQLAlchemy implementation of MembershipRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db.tables import MembershipRow
from leavedesk.models.organization import Membership, Role
from leavedesk.repos.membership_repo import sort_default_first


class PgMembershipRepo:
    """Satisfies the MembershipRepo Protocol using the user_organizations table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: UUID, organization_id: UUID) -> Membership | None:
        row = await self._session.get(MembershipRow, (user_id, organization_id))
        if row is None:
            return None
        return _row_to_membership(row)

    async def get_active(
        self, user_id: UUID, organization_id: UUID
    ) -> Membership | None:
        stmt = select(MembershipRow).where(
            MembershipRow.user_id == user_id,
            MembershipRow.organization_id == organization_id,
            MembershipRow.is_active.is_(True),
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)

    async def get_default(self, user_id: UUID) -> Membership | None:
        stmt = select(MembershipRow).where(
            MembershipRow.user_id == user_id,
            MembershipRow.is_active.is_(True),
            MembershipRow.is_default.is_(True),
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)

    async def list_active_by_user(self, user_id: UUID) -> list[Membership]:
        stmt = select(MembershipRow).where(
            MembershipRow.user_id == user_id,
            MembershipRow.is_active.is_(True),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return sort_default_first([_row_to_membership(r) for r in rows])

    async def list_active_by_org(self, organization_id: UUID) -> list[Membership]:
        stmt = select(MembershipRow).where(
            MembershipRow.organization_id == organization_id,
            MembershipRow.is_active.is_(True),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]

    async def add(self, membership: Membership) -> None:
        if await self.get(membership.user_id, membership.organization_id) is not None:
            raise ValueError("membership already exists")
        if membership.is_default and membership.is_active:
            if await self.get_default(membership.user_id) is not None:
                raise ValueError("user already has a default membership")
        row = MembershipRow(
            user_id=membership.user_id,
            organization_id=membership.organization_id,
            role=membership.role.value,
            is_active=membership.is_active,
            is_default=membership.is_default,
            employment_type=membership.employment_type,
            joined_via=membership.joined_via,
            team_id=membership.team_id,
        )
        self._session.add(row)
        await self._session.flush()

    async def reactivate(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None:
        stmt = (
            update(MembershipRow)
            .where(
                MembershipRow.user_id == user_id,
                MembershipRow.organization_id == organization_id,
                MembershipRow.is_active.is_(False),
            )
            .values(is_active=True, is_default=False, role=role.value)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self._refresh(user_id, organization_id)

    async def update_role(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None:
        return await self._update_active(user_id, organization_id, role=role.value)

    async def set_team(
        self, user_id: UUID, organization_id: UUID, team_id: UUID | None
    ) -> Membership | None:
        return await self._update_active(user_id, organization_id, team_id=team_id)

    async def deactivate(self, user_id: UUID, organization_id: UUID) -> bool:
        updated = await self._update_active(
            user_id, organization_id, is_active=False, is_default=False
        )
        return updated is not None

    async def deactivate_organization(self, organization_id: UUID) -> int:
        stmt = (
            update(MembershipRow)
            .where(
                MembershipRow.organization_id == organization_id,
                MembershipRow.is_active.is_(True),
            )
            .values(is_active=False, is_default=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount or 0

    async def set_default(self, user_id: UUID, organization_id: UUID) -> bool:
        """Move the user's default to ``organization_id``.

        Both updates run inside the caller's transaction, so readers see
        either the old default or the new one, never zero or two.  The
        partial unique index on (user_id) WHERE is_default AND is_active
        rejects any interleaving that would leave two defaults.
        """
        if await self.get_active(user_id, organization_id) is None:
            return False
        await self._session.execute(
            update(MembershipRow)
            .where(
                MembershipRow.user_id == user_id,
                MembershipRow.is_default.is_(True),
            )
            .values(is_default=False)
        )
        await self._session.execute(
            update(MembershipRow)
            .where(
                MembershipRow.user_id == user_id,
                MembershipRow.organization_id == organization_id,
                MembershipRow.is_active.is_(True),
            )
            .values(is_default=True)
        )
        await self._session.flush()
        return True

    async def _update_active(
        self, user_id: UUID, organization_id: UUID, **values: object
    ) -> Membership | None:
        stmt = (
            update(MembershipRow)
            .where(
                MembershipRow.user_id == user_id,
                MembershipRow.organization_id == organization_id,
                MembershipRow.is_active.is_(True),
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self._refresh(user_id, organization_id)

    async def _refresh(self, user_id: UUID, organization_id: UUID) -> Membership | None:
        # Core UPDATEs bypass the identity map; re-read the row from the database.
        stmt = (
            select(MembershipRow)
            .where(
                MembershipRow.user_id == user_id,
                MembershipRow.organization_id == organization_id,
            )
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_membership(row)


def _row_to_membership(row: MembershipRow) -> Membership:
    return Membership(
        user_id=row.user_id,
        organization_id=row.organization_id,
        role=Role(row.role),
        is_active=row.is_active,
        is_default=row.is_default,
        employment_type=row.employment_type,
        joined_via=row.joined_via,
        team_id=row.team_id,
    )
