from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from leavedesk.api.dependencies import Store, require_capability
from leavedesk.core.errors import AccessDenied, DenialReason
from leavedesk.models.principal import OrgContext
from leavedesk.models.team import Team
from leavedesk.services.authorizer import Capability
from leavedesk.services.protected import fetch_scoped, scoped_add

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/teams", tags=["teams"])

_view_teams = require_capability(Capability.VIEW_TEAMS)
_manage_teams = require_capability(Capability.MANAGE_TEAM_MEMBERSHIP)


class TeamIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    manager_id: UUID | None = None


class TeamOut(BaseModel):
    id: str
    name: str
    manager_id: str | None
    member_ids: list[str]


class TeamMemberIn(BaseModel):
    user_id: UUID


async def _team_out(store, team: Team) -> TeamOut:
    members = await store.memberships.list_active_by_org(team.organization_id)
    return TeamOut(
        id=str(team.id),
        name=team.name,
        manager_id=str(team.manager_id) if team.manager_id else None,
        member_ids=sorted(str(m.user_id) for m in members if m.team_id == team.id),
    )


async def _require_member(store, ctx: OrgContext, user_id: UUID) -> None:
    # Only members of this organization can be placed in its teams.
    if await store.memberships.get_active(user_id, ctx.organization_id) is None:
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND)


@router.get("", response_model=list[TeamOut])
async def list_teams(
    ctx: Annotated[OrgContext, Depends(_view_teams)], store: Store
) -> list[TeamOut]:
    teams = await store.teams.find(ctx.organization_id)
    return [await _team_out(store, t) for t in sorted(teams, key=lambda t: t.name)]


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
async def create_team(
    body: TeamIn,
    ctx: Annotated[OrgContext, Depends(_manage_teams)],
    store: Store,
) -> TeamOut:
    if body.manager_id is not None:
        await _require_member(store, ctx, body.manager_id)
    if await store.teams.count(ctx.organization_id, name=body.name):
        raise HTTPException(status_code=409, detail="team name already taken")
    team = Team.new(
        organization_id=ctx.organization_id,
        name=body.name,
        manager_id=body.manager_id,
    )
    await scoped_add(store.teams, ctx, team)
    logger.info("Team created id=%s org=%s", team.id, ctx.organization_id)
    return await _team_out(store, team)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: UUID,
    ctx: Annotated[OrgContext, Depends(_manage_teams)],
    store: Store,
) -> None:
    team = await fetch_scoped(store.teams, ctx, team_id)
    for m in await store.memberships.list_active_by_org(ctx.organization_id):
        if m.team_id == team.id:
            await store.memberships.set_team(m.user_id, ctx.organization_id, None)
    await store.teams.delete(ctx.organization_id, team.id)


@router.post("/{team_id}/members", response_model=TeamOut)
async def add_team_member(
    team_id: UUID,
    body: TeamMemberIn,
    ctx: Annotated[OrgContext, Depends(_manage_teams)],
    store: Store,
) -> TeamOut:
    team = await fetch_scoped(store.teams, ctx, team_id)
    await _require_member(store, ctx, body.user_id)
    await store.memberships.set_team(body.user_id, ctx.organization_id, team.id)
    return await _team_out(store, team)


@router.delete("/{team_id}/members/{user_id}", response_model=TeamOut)
async def remove_team_member(
    team_id: UUID,
    user_id: UUID,
    ctx: Annotated[OrgContext, Depends(_manage_teams)],
    store: Store,
) -> TeamOut:
    team = await fetch_scoped(store.teams, ctx, team_id)
    membership = await store.memberships.get_active(user_id, ctx.organization_id)
    if membership is None or membership.team_id != team.id:
        raise AccessDenied(DenialReason.RESOURCE_NOT_FOUND)
    await store.memberships.set_team(user_id, ctx.organization_id, None)
    return await _team_out(store, team)
