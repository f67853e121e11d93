from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Team:
    id: UUID
    organization_id: UUID
    name: str
    manager_id: UUID | None = None

    @staticmethod
    def new(
        *, organization_id: UUID, name: str, manager_id: UUID | None = None
    ) -> Team:
        return Team(
            id=uuid4(), organization_id=organization_id, name=name, manager_id=manager_id
        )
