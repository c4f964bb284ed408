"""Initial schema: users, projects, assignments, timesheets, activity log.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


ROLE = sa.Enum("ADMIN", "HR", "MANAGER", "EMPLOYEE", name="role")
TIMESHEET_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", name="timesheet_status")
PROJECT_STATUS = sa.Enum("PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED", name="project_status")
PROJECT_PRIORITY = sa.Enum("LOW", "MEDIUM", "HIGH", "CRITICAL", name="project_priority")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", ROLE, nullable=False),
        sa.Column("employee_id", sa.String(length=20), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("job_title", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["manager_id"], ["users.id"], name="fk_users_manager_id_users", ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_employee_id", "users", ["employee_id"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_department", "users", ["department"])
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("ix_users_manager_id", "users", ["manager_id"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", PROJECT_STATUS, nullable=False),
        sa.Column("priority", PROJECT_PRIORITY, nullable=False),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("project_manager_id", sa.Integer(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["project_manager_id"], ["users.id"], name="fk_projects_project_manager_id_users"
        ),
        sa.ForeignKeyConstraint(
            ["created_by_user_id"], ["users.id"], name="fk_projects_created_by_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_projects"),
    )
    op.create_index("ix_projects_id", "projects", ["id"])
    op.create_index("ix_projects_name", "projects", ["name"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_project_manager_id", "projects", ["project_manager_id"])
    op.create_index("ix_projects_created_by_user_id", "projects", ["created_by_user_id"])

    op.create_table(
        "project_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=100), nullable=True),
        sa.Column("allocated_hours", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("assigned_by_user_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.id"], name="fk_project_assignments_project_id_projects", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["employee_id"], ["users.id"], name="fk_project_assignments_employee_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["assigned_by_user_id"], ["users.id"], name="fk_project_assignments_assigned_by_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_project_assignments"),
        sa.UniqueConstraint("project_id", "employee_id", name="uq_project_assignments_project_employee"),
    )
    op.create_index("ix_project_assignments_id", "project_assignments", ["id"])
    op.create_index("ix_project_assignments_project_id", "project_assignments", ["project_id"])
    op.create_index("ix_project_assignments_employee_id", "project_assignments", ["employee_id"])
    op.create_index("ix_project_assignments_is_active", "project_assignments", ["is_active"])

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("status", TIMESHEET_STATUS, nullable=False),
        sa.Column("reviewed_by_user_id", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_comments", sa.String(length=500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_timesheets_user_id_users"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], name="fk_timesheets_project_id_projects"),
        sa.ForeignKeyConstraint(
            ["reviewed_by_user_id"], ["users.id"], name="fk_timesheets_reviewed_by_user_id_users"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_timesheets"),
    )
    op.create_index("ix_timesheets_id", "timesheets", ["id"])
    op.create_index("ix_timesheets_user_id", "timesheets", ["user_id"])
    op.create_index("ix_timesheets_project_id", "timesheets", ["project_id"])
    op.create_index("ix_timesheets_work_date", "timesheets", ["work_date"])
    op.create_index("ix_timesheets_status", "timesheets", ["status"])
    op.create_index("ix_timesheets_reviewed_by_user_id", "timesheets", ["reviewed_by_user_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["actor_user_id"], ["users.id"], name="fk_activity_logs_actor_user_id_users", ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
    )
    op.create_index("ix_activity_logs_id", "activity_logs", ["id"])
    op.create_index("ix_activity_logs_actor_user_id", "activity_logs", ["actor_user_id"])
    op.create_index("ix_activity_logs_type", "activity_logs", ["type"])
    op.create_index("ix_activity_logs_entity_type", "activity_logs", ["entity_type"])
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("timesheets")
    op.drop_table("project_assignments")
    op.drop_table("projects")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name != "sqlite":
        for enum in (PROJECT_PRIORITY, PROJECT_STATUS, TIMESHEET_STATUS, ROLE):
            enum.drop(bind, checkfirst=True)
