"""SQLAlchemy implementation of ScopedRepo.

One class serves every organization-scoped table.  It is parametrized by the
row class and the dataclass model; because table columns and dataclass
fields share names, conversion is a field-by-field copy.

Every statement this class builds carries ``organization_id = :org`` in its
WHERE clause, including updates and deletes.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any, Generic
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.repos.scoped_repo import T


class PgScopedRepo(Generic[T]):
    def __init__(
        self, session: AsyncSession, row_cls: type[Any], model_cls: type[T]
    ) -> None:
        self._session = session
        self._row_cls = row_cls
        self._model_cls = model_cls
        self._field_names = tuple(f.name for f in fields(model_cls))  # type: ignore[arg-type]

    def _scoped(self, organization_id: UUID, **filters: Any) -> list[Any]:
        clauses = [self._row_cls.organization_id == organization_id]
        for name, value in filters.items():
            if name not in self._field_names:
                raise ValueError(f"unknown filter: {name}")
            clauses.append(getattr(self._row_cls, name) == value)
        return clauses

    async def find(self, organization_id: UUID, **filters: Any) -> list[T]:
        stmt = select(self._row_cls).where(*self._scoped(organization_id, **filters))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [self._to_model(r) for r in rows]

    async def count(self, organization_id: UUID, **filters: Any) -> int:
        stmt = (
            select(func.count())
            .select_from(self._row_cls)
            .where(*self._scoped(organization_id, **filters))
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def get(self, organization_id: UUID, record_id: UUID) -> T | None:
        stmt = select(self._row_cls).where(
            *self._scoped(organization_id), self._row_cls.id == record_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return self._to_model(row)

    async def add(self, record: T) -> None:
        if await self._session.get(self._row_cls, record.id) is not None:
            raise ValueError("record already exists")
        self._session.add(self._row_cls(**asdict(record)))  # type: ignore[call-overload]
        await self._session.flush()

    async def update(
        self, organization_id: UUID, record_id: UUID, **changes: Any
    ) -> T | None:
        if "organization_id" in changes or "id" in changes:
            raise ValueError("id and organization_id are immutable")
        stmt = (
            update(self._row_cls)
            .where(*self._scoped(organization_id), self._row_cls.id == record_id)
            .values(**changes)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get(organization_id, record_id)

    async def delete(self, organization_id: UUID, record_id: UUID) -> bool:
        stmt = (
            delete(self._row_cls)
            .where(*self._scoped(organization_id), self._row_cls.id == record_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    def _to_model(self, row: Any) -> T:
        return self._model_cls(**{name: getattr(row, name) for name in self._field_names})
