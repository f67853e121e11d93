from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class User:
    """A row of ``profiles``.  Deliberately has no role: roles are per membership."""

    id: UUID
    email: str
    full_name: str = ""

    @staticmethod
    def new(*, email: str, full_name: str = "") -> User:
        return User(id=uuid4(), email=email.strip().lower(), full_name=full_name)
