"""initial schema

Revision ID: 3b1d6c9e2a40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "3b1d6c9e2a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("google_domain", sa.String(length=255), nullable=True),
        sa.Column(
            "require_google_domain", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="active"),
    )
    op.create_table(
        "teams",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=True),
    )
    op.create_index("ix_teams_organization_id", "teams", ["organization_id"])

    op.create_table(
        "user_organizations",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id"), primary_key=True),
        sa.Column(
            "organization_id",
            sa.Uuid(),
            sa.ForeignKey("organizations.id"),
            primary_key=True,
        ),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "employment_type", sa.String(length=32), nullable=False, server_default="full_time"
        ),
        sa.Column(
            "joined_via", sa.String(length=32), nullable=False, server_default="invitation"
        ),
        sa.Column("team_id", sa.Uuid(), sa.ForeignKey("teams.id"), nullable=True),
        sa.CheckConstraint(
            "role IN ('admin', 'manager', 'employee')", name="ck_user_organizations_role"
        ),
    )
    op.create_index(
        "uq_user_organizations_one_default",
        "user_organizations",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_default AND is_active"),
    )
    op.create_index(
        "ix_user_organizations_org_active",
        "user_organizations",
        ["organization_id", "is_active"],
    )

    op.create_table(
        "organization_settings",
        sa.Column(
            "organization_id",
            sa.Uuid(),
            sa.ForeignKey("organizations.id"),
            primary_key=True,
        ),
        sa.Column("allow_domain_join_requests", sa.Boolean(), nullable=False),
        sa.Column("is_discoverable_by_domain", sa.Boolean(), nullable=False),
        sa.Column("require_admin_approval_for_domain_join", sa.Boolean(), nullable=False),
        sa.Column("auto_approve_verified_domains", sa.Boolean(), nullable=False),
        sa.Column("default_employment_type", sa.String(length=32), nullable=False),
        sa.Column("require_contract_dates", sa.Boolean(), nullable=False),
        sa.Column("data_retention_days", sa.Integer(), nullable=False),
        sa.Column("allow_data_export", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days_requested", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.Uuid(), nullable=True),
        sa.Column("reviewed_at", sa.Integer(), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("edited_by", sa.Uuid(), nullable=True),
        sa.Column("edited_at", sa.Integer(), nullable=True),
    )
    op.create_index(
        "ix_leave_requests_organization_id", "leave_requests", ["organization_id"]
    )

    op.create_table(
        "invitations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "organization_id", sa.Uuid(), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("invited_by", sa.Uuid(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("expires_at", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False, unique=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
    )
    op.create_index("ix_invitations_organization_id", "invitations", ["organization_id"])


def downgrade() -> None:
    op.drop_table("invitations")
    op.drop_table("leave_requests")
    op.drop_table("organization_settings")
    op.drop_index("ix_user_organizations_org_active", table_name="user_organizations")
    op.drop_index("uq_user_organizations_one_default", table_name="user_organizations")
    op.drop_table("user_organizations")
    op.drop_table("teams")
    op.drop_table("organizations")
    op.drop_table("profiles")
