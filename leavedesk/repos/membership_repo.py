from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from leavedesk.models.organization import Membership, Role


class MembershipRepo(Protocol):
    """The user_organizations table: ground truth for who belongs where, as what.

    Every ``*_active`` read filters out revoked memberships; authorization
    code must only ever use those.  ``get`` (any state) exists for the
    write paths that need to know whether a row already occupies the
    (user, organization) key.
    """

    async def get(self, user_id: UUID, organization_id: UUID) -> Membership | None: ...
    async def get_active(
        self, user_id: UUID, organization_id: UUID
    ) -> Membership | None: ...
    async def get_default(self, user_id: UUID) -> Membership | None: ...
    async def list_active_by_user(self, user_id: UUID) -> list[Membership]: ...
    async def list_active_by_org(self, organization_id: UUID) -> list[Membership]: ...
    async def add(self, membership: Membership) -> None: ...
    async def reactivate(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None: ...
    async def update_role(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None: ...
    async def set_team(
        self, user_id: UUID, organization_id: UUID, team_id: UUID | None
    ) -> Membership | None: ...
    async def deactivate(self, user_id: UUID, organization_id: UUID) -> bool: ...
    async def deactivate_organization(self, organization_id: UUID) -> int: ...
    async def set_default(self, user_id: UUID, organization_id: UUID) -> bool: ...


def sort_default_first(memberships: list[Membership]) -> list[Membership]:
    return sorted(memberships, key=lambda m: (not m.is_default, str(m.organization_id)))


class InMemoryMembershipRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], Membership] = {}

    async def get(self, user_id: UUID, organization_id: UUID) -> Membership | None:
        return self._store.get((user_id, organization_id))

    async def get_active(
        self, user_id: UUID, organization_id: UUID
    ) -> Membership | None:
        m = self._store.get((user_id, organization_id))
        if m is None or not m.is_active:
            return None
        return m

    async def get_default(self, user_id: UUID) -> Membership | None:
        for m in self._store.values():
            if m.user_id == user_id and m.is_active and m.is_default:
                return m
        return None

    async def list_active_by_user(self, user_id: UUID) -> list[Membership]:
        return sort_default_first(
            [m for m in self._store.values() if m.user_id == user_id and m.is_active]
        )

    async def list_active_by_org(self, organization_id: UUID) -> list[Membership]:
        return [
            m
            for m in self._store.values()
            if m.organization_id == organization_id and m.is_active
        ]

    async def add(self, membership: Membership) -> None:
        key = (membership.user_id, membership.organization_id)
        if key in self._store:
            raise ValueError("membership already exists")
        if membership.is_default and membership.is_active:
            if await self.get_default(membership.user_id) is not None:
                raise ValueError("user already has a default membership")
        self._store[key] = membership

    async def reactivate(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None:
        key = (user_id, organization_id)
        existing = self._store.get(key)
        if existing is None or existing.is_active:
            return None
        updated = replace(existing, is_active=True, is_default=False, role=role)
        self._store[key] = updated
        return updated

    async def update_role(
        self, user_id: UUID, organization_id: UUID, role: Role
    ) -> Membership | None:
        return self._update_active(user_id, organization_id, role=role)

    async def set_team(
        self, user_id: UUID, organization_id: UUID, team_id: UUID | None
    ) -> Membership | None:
        return self._update_active(user_id, organization_id, team_id=team_id)

    async def deactivate(self, user_id: UUID, organization_id: UUID) -> bool:
        # A revoked membership can never stay the default.
        return (
            self._update_active(
                user_id, organization_id, is_active=False, is_default=False
            )
            is not None
        )

    async def deactivate_organization(self, organization_id: UUID) -> int:
        count = 0
        for key, m in list(self._store.items()):
            if m.organization_id == organization_id and m.is_active:
                self._store[key] = replace(m, is_active=False, is_default=False)
                count += 1
        return count

    async def set_default(self, user_id: UUID, organization_id: UUID) -> bool:
        target = self._store.get((user_id, organization_id))
        if target is None or not target.is_active:
            return False
        # No await between clearing and setting: the swap is one step for
        # every other coroutine on the loop.
        for key, m in list(self._store.items()):
            if m.user_id == user_id and m.is_default:
                self._store[key] = replace(m, is_default=False)
        self._store[(user_id, organization_id)] = replace(target, is_default=True)
        return True

    def _update_active(
        self, user_id: UUID, organization_id: UUID, **changes: object
    ) -> Membership | None:
        key = (user_id, organization_id)
        existing = self._store.get(key)
        if existing is None or not existing.is_active:
            return None
        updated = replace(existing, **changes)  # type: ignore[arg-type]
        self._store[key] = updated
        return updated
