"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in leavedesk/models/.
Column names match the dataclass field names one-to-one; the SQL repos
rely on that to convert rows to models.

Types are the dialect-neutral ones (``Uuid``, ``Date``) so the same
metadata runs on PostgreSQL in production and SQLite in repo tests.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from leavedesk.db.engine import Base


class ProfileRow(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class OrganizationRow(Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    google_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    require_google_domain: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active"
    )  # active|deleted


class MembershipRow(Base):
    __tablename__ = "user_organizations"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), primary_key=True
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)  # admin|manager|employee
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    employment_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="full_time"
    )
    joined_via: Mapped[str] = mapped_column(
        String(32), nullable=False, default="invitation"
    )
    team_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teams.id"), nullable=True
    )

    __table_args__ = (
        # At most one active default membership per user, enforced on write.
        Index(
            "uq_user_organizations_one_default",
            "user_id",
            unique=True,
            postgresql_where=text("is_default AND is_active"),
            sqlite_where=text("is_default AND is_active"),
        ),
        Index("ix_user_organizations_org_active", "organization_id", "is_active"),
    )


class OrganizationSettingsRow(Base):
    __tablename__ = "organization_settings"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), primary_key=True
    )
    allow_domain_join_requests: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    is_discoverable_by_domain: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    require_admin_approval_for_domain_join: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    auto_approve_verified_domains: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    default_employment_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="full_time"
    )
    require_contract_dates: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    data_retention_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=365
    )
    allow_data_export: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# --- Organization-scoped resources: every row carries organization_id ---


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    manager_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=True
    )


class LeaveRequestRow(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_requested: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # pending|approved|rejected|cancelled
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    reviewed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    edited_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    edited_at: Mapped[int | None] = mapped_column(Integer, nullable=True)


class InvitationRow(Base):
    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    invited_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False
    )
    expires_at: Mapped[int] = mapped_column(Integer, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending"
    )  # pending|accepted|cancelled|expired
