"""Timesheet core: users, projects, holidays, timesheet_entries, audit_logs

Revision ID: 001
Revises:
Create Date: 2026-10-18

users / projects / holidays mirror master data owned elsewhere; they are
created here so a fresh database can run the engine end to end.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="EMPLOYEE"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- projects ---
    op.create_table(
        "projects",
        sa.Column("project_id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("default_approver", sa.Uuid(), nullable=True),
        sa.Column("billable", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_projects_default_approver", "projects", ["default_approver"])

    # --- holidays ---
    op.create_table(
        "holidays",
        sa.Column("holiday_date", sa.Date(), primary_key=True),
        sa.Column("region", sa.String(10), primary_key=True, server_default=""),
        sa.Column("name", sa.String(200), nullable=False),
    )

    # --- timesheet_entries ---
    op.create_table(
        "timesheet_entries",
        sa.Column("entry_id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sa.Uuid(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Numeric(5, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ticket_ref", sa.String(100), nullable=True),
        sa.Column("task_type", sa.String(30), nullable=False, server_default="development"),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approver_comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("hours >= 0 AND hours <= 24", name="ck_ts_hours_range"),
    )
    op.create_index("ix_ts_user_date", "timesheet_entries", ["user_id", "work_date"])
    op.create_index("ix_ts_status_date", "timesheet_entries", ["status", "work_date"])
    op.create_index("ix_timesheet_entries_project_id", "timesheet_entries", ["project_id"])

    # --- audit_logs (append-only) ---
    op.create_table(
        "audit_logs",
        sa.Column("audit_log_id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("entity", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("before_json", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("after_json", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_index("ix_timesheet_entries_project_id", table_name="timesheet_entries")
    op.drop_index("ix_ts_status_date", table_name="timesheet_entries")
    op.drop_index("ix_ts_user_date", table_name="timesheet_entries")
    op.drop_table("timesheet_entries")
    op.drop_table("holidays")
    op.drop_index("ix_projects_default_approver", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
