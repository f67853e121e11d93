"""Organization settings: admin only."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from leavedesk.api.dependencies import Store, require_capability
from leavedesk.models.organization import OrganizationSettings
from leavedesk.models.principal import OrgContext
from leavedesk.services import organizations as org_service
from leavedesk.services.authorizer import Capability

router = APIRouter(prefix="/v1/organization/settings", tags=["settings"])

_manage_settings = require_capability(Capability.MANAGE_SETTINGS)


class SettingsOut(BaseModel):
    allow_domain_join_requests: bool
    is_discoverable_by_domain: bool
    require_admin_approval_for_domain_join: bool
    auto_approve_verified_domains: bool
    default_employment_type: str
    require_contract_dates: bool
    data_retention_days: int
    allow_data_export: bool


class SettingsPatchIn(BaseModel):
    allow_domain_join_requests: bool | None = None
    is_discoverable_by_domain: bool | None = None
    require_admin_approval_for_domain_join: bool | None = None
    auto_approve_verified_domains: bool | None = None
    default_employment_type: str | None = None
    require_contract_dates: bool | None = None
    data_retention_days: int | None = Field(default=None, ge=1)
    allow_data_export: bool | None = None


def _out(settings: OrganizationSettings) -> SettingsOut:
    values: dict[str, Any] = asdict(settings)
    values.pop("organization_id")
    return SettingsOut(**values)


@router.get("", response_model=SettingsOut)
async def get_settings(
    ctx: Annotated[OrgContext, Depends(_manage_settings)], store: Store
) -> SettingsOut:
    return _out(await org_service.get_settings(store, ctx.organization_id))


@router.patch("", response_model=SettingsOut)
async def update_settings(
    body: SettingsPatchIn,
    ctx: Annotated[OrgContext, Depends(_manage_settings)],
    store: Store,
) -> SettingsOut:
    changes = body.model_dump(exclude_none=True)
    try:
        updated = await org_service.update_settings(
            store, ctx.organization_id, **changes
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return _out(updated)
