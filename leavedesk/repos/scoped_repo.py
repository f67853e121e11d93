"""Repositories for organization-scoped tables.

Leave requests, teams and invitations all carry an ``organization_id``.
The repository interface makes that column impossible to forget: every
read and write takes the organization id as its first argument, and there
is no "get by id across all organizations" method to reach for.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Generic, Protocol, TypeVar
from uuid import UUID


class OrgScoped(Protocol):
    @property
    def id(self) -> UUID: ...
    @property
    def organization_id(self) -> UUID: ...


T = TypeVar("T", bound=OrgScoped)


class ScopedRepo(Protocol[T]):
    async def find(self, organization_id: UUID, **filters: Any) -> list[T]: ...
    async def count(self, organization_id: UUID, **filters: Any) -> int: ...
    async def get(self, organization_id: UUID, record_id: UUID) -> T | None: ...
    async def add(self, record: T) -> None: ...
    async def update(
        self, organization_id: UUID, record_id: UUID, **changes: Any
    ) -> T | None: ...
    async def delete(self, organization_id: UUID, record_id: UUID) -> bool: ...


class InMemoryScopedRepo(Generic[T]):
    def __init__(self) -> None:
        self._store: dict[UUID, T] = {}

    async def find(self, organization_id: UUID, **filters: Any) -> list[T]:
        return [
            r
            for r in self._store.values()
            if r.organization_id == organization_id
            and all(getattr(r, k) == v for k, v in filters.items())
        ]

    async def count(self, organization_id: UUID, **filters: Any) -> int:
        return len(await self.find(organization_id, **filters))

    async def get(self, organization_id: UUID, record_id: UUID) -> T | None:
        record = self._store.get(record_id)
        if record is None or record.organization_id != organization_id:
            return None
        return record

    async def add(self, record: T) -> None:
        if record.id in self._store:
            raise ValueError("record already exists")
        self._store[record.id] = record

    async def update(
        self, organization_id: UUID, record_id: UUID, **changes: Any
    ) -> T | None:
        existing = await self.get(organization_id, record_id)
        if existing is None:
            return None
        if "organization_id" in changes or "id" in changes:
            raise ValueError("id and organization_id are immutable")
        updated = replace(existing, **changes)  # type: ignore[type-var]
        self._store[record_id] = updated
        return updated

    async def delete(self, organization_id: UUID, record_id: UUID) -> bool:
        if await self.get(organization_id, record_id) is None:
            return False
        del self._store[record_id]
        return True
