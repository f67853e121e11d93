from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from leavedesk.models.organization import Organization, OrganizationSettings


class OrgRepo(Protocol):
    async def get_by_id(self, organization_id: UUID) -> Organization | None: ...
    async def get_by_slug(self, slug: str) -> Organization | None: ...
    async def add(self, org: Organization) -> None: ...
    async def mark_deleted(self, organization_id: UUID) -> bool: ...


class SettingsRepo(Protocol):
    async def get(self, organization_id: UUID) -> OrganizationSettings | None: ...
    async def save(self, settings: OrganizationSettings) -> None: ...


class InMemoryOrgRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Organization] = {}
        self._by_slug: dict[str, Organization] = {}

    async def get_by_id(self, organization_id: UUID) -> Organization | None:
        return self._by_id.get(organization_id)

    async def get_by_slug(self, slug: str) -> Organization | None:
        return self._by_slug.get(slug)

    async def add(self, org: Organization) -> None:
        if org.slug in self._by_slug:
            raise ValueError("slug already exists")
        self._by_id[org.id] = org
        self._by_slug[org.slug] = org

    async def mark_deleted(self, organization_id: UUID) -> bool:
        org = self._by_id.get(organization_id)
        if org is None or org.is_deleted:
            return False
        updated = replace(org, status="deleted")
        self._by_id[org.id] = updated
        self._by_slug[org.slug] = updated
        return True


class InMemorySettingsRepo:
    def __init__(self) -> None:
        self._store: dict[UUID, OrganizationSettings] = {}

    async def get(self, organization_id: UUID) -> OrganizationSettings | None:
        return self._store.get(organization_id)

    async def save(self, settings: OrganizationSettings) -> None:
        self._store[settings.organization_id] = settings
