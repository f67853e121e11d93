"""The DataStore bundle: every repository a request may touch.

Routes and services receive one ``DataStore`` instead of a handful of
module-level repo singletons.  ``memory_store`` is the process-wide
in-memory bundle (dev, tests); ``sql_store(session)`` binds the SQLAlchemy
repos to one request-scoped session.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.db.tables import LeaveRequestRow, TeamRow
from leavedesk.models.leave_request import LeaveRequest
from leavedesk.models.team import Team
from leavedesk.repos.invitation_repo import InMemoryInvitationRepo, InvitationRepo
from leavedesk.repos.membership_repo import InMemoryMembershipRepo, MembershipRepo
from leavedesk.repos.org_repo import (
    InMemoryOrgRepo,
    InMemorySettingsRepo,
    OrgRepo,
    SettingsRepo,
)
from leavedesk.repos.pg_invitation_repo import PgInvitationRepo
from leavedesk.repos.pg_membership_repo import PgMembershipRepo
from leavedesk.repos.pg_org_repo import PgOrgRepo, PgSettingsRepo
from leavedesk.repos.pg_scoped_repo import PgScopedRepo
from leavedesk.repos.pg_user_repo import PgUserRepo
from leavedesk.repos.scoped_repo import InMemoryScopedRepo, ScopedRepo
from leavedesk.repos.user_repo import InMemoryUserRepo, UserRepo


@dataclass(slots=True)
class DataStore:
    users: UserRepo
    organizations: OrgRepo
    memberships: MembershipRepo
    settings: SettingsRepo
    leave_requests: ScopedRepo[LeaveRequest]
    teams: ScopedRepo[Team]
    invitations: InvitationRepo


def in_memory_store() -> DataStore:
    return DataStore(
        users=InMemoryUserRepo(),
        organizations=InMemoryOrgRepo(),
        memberships=InMemoryMembershipRepo(),
        settings=InMemorySettingsRepo(),
        leave_requests=InMemoryScopedRepo[LeaveRequest](),
        teams=InMemoryScopedRepo[Team](),
        invitations=InMemoryInvitationRepo(),
    )


def sql_store(session: AsyncSession) -> DataStore:
    return DataStore(
        users=PgUserRepo(session),
        organizations=PgOrgRepo(session),
        memberships=PgMembershipRepo(session),
        settings=PgSettingsRepo(session),
        leave_requests=PgScopedRepo(session, LeaveRequestRow, LeaveRequest),
        teams=PgScopedRepo(session, TeamRow, Team),
        invitations=PgInvitationRepo(session),
    )


# Process-wide in-memory store; tests reset it via reset_memory_store().
memory_store = in_memory_store()


def reset_memory_store() -> None:
    fresh = in_memory_store()
    for f in fields(DataStore):
        setattr(memory_store, f.name, getattr(fresh, f.name))
