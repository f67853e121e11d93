"""Profiles store.

Users exist independently of any organization; the employee directory and
the invitation flow read profiles by id or email, never by organization.
Emails are stored lowercased and are unique across the whole service.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from leavedesk.models.user import User


class EmailTakenError(ValueError):
    pass


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]: ...
    async def add(self, user: User) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._profiles: dict[UUID, User] = {}
        self._id_for_email: dict[str, UUID] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._profiles.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        user_id = self._id_for_email.get(email.strip().lower())
        return self._profiles.get(user_id) if user_id else None

    async def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        return {uid: self._profiles[uid] for uid in user_ids if uid in self._profiles}

    async def add(self, user: User) -> None:
        if user.email in self._id_for_email:
            raise EmailTakenError(user.email)
        self._profiles[user.id] = user
        self._id_for_email[user.email] = user.id
