"""SQLAlchemy implementations of OrgRepo and SettingsRepo."""

from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db.tables import OrganizationRow, OrganizationSettingsRow
from leavedesk.models.organization import Organization, OrganizationSettings


class PgOrgRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, organization_id: UUID) -> Organization | None:
        row = await self._session.get(OrganizationRow, organization_id)
        if row is None:
            return None
        return _row_to_org(row)

    async def get_by_slug(self, slug: str) -> Organization | None:
        stmt = select(OrganizationRow).where(OrganizationRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_org(row)

    async def add(self, org: Organization) -> None:
        if await self.get_by_slug(org.slug) is not None:
            raise ValueError("slug already exists")
        self._session.add(
            OrganizationRow(
                id=org.id,
                name=org.name,
                slug=org.slug,
                google_domain=org.google_domain,
                require_google_domain=org.require_google_domain,
                status=org.status,
            )
        )
        await self._session.flush()

    async def mark_deleted(self, organization_id: UUID) -> bool:
        stmt = (
            update(OrganizationRow)
            .where(
                OrganizationRow.id == organization_id,
                OrganizationRow.status != "deleted",
            )
            .values(status="deleted")
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


class PgSettingsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, organization_id: UUID) -> OrganizationSettings | None:
        row = await self._session.get(OrganizationSettingsRow, organization_id)
        if row is None:
            return None
        return OrganizationSettings(
            organization_id=row.organization_id,
            allow_domain_join_requests=row.allow_domain_join_requests,
            is_discoverable_by_domain=row.is_discoverable_by_domain,
            require_admin_approval_for_domain_join=row.require_admin_approval_for_domain_join,
            auto_approve_verified_domains=row.auto_approve_verified_domains,
            default_employment_type=row.default_employment_type,
            require_contract_dates=row.require_contract_dates,
            data_retention_days=row.data_retention_days,
            allow_data_export=row.allow_data_export,
        )

    async def save(self, settings: OrganizationSettings) -> None:
        # merge() inserts on first save and updates afterwards.
        await self._session.merge(OrganizationSettingsRow(**asdict(settings)))
        await self._session.flush()


def _row_to_org(row: OrganizationRow) -> Organization:
    return Organization(
        id=row.id,
        name=row.name,
        slug=row.slug,
        google_domain=row.google_domain,
        require_google_domain=row.require_google_domain,
        status=row.status,
    )
