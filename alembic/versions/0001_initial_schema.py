"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

Projects, their members and task lists, and the tasks themselves.
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- projects ---
    op.create_table(
        "projects",
        sa.Column("project_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=False),
        sa.Column("owner", sa.String, nullable=False, index=True),
        sa.Column(
            "needs_assignment",
            sa.Boolean,
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    # --- project_users ---
    op.create_table(
        "project_users",
        sa.Column(
            "project_id",
            sa.Integer,
            sa.ForeignKey("projects.project_id"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String, primary_key=True, index=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )

    # --- project_tasks ---
    # No foreign key on task_id, see stm_core/models/relationships.py
    op.create_table(
        "project_tasks",
        sa.Column(
            "project_id",
            sa.Integer,
            sa.ForeignKey("projects.project_id"),
            primary_key=True,
        ),
        sa.Column("task_id", sa.Integer, primary_key=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.UniqueConstraint("task_id", name="uq_project_tasks_task_id"),
    )

    # --- tasks ---
    op.create_table(
        "tasks",
        sa.Column("task_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("process_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_process_points", sa.Integer, nullable=False),
        sa.Column("geometry", sa.Text, nullable=False, server_default=""),
        sa.Column("assigned_user", sa.String, nullable=True, index=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("process_points >= 0", name="ck_task_points_positive"),
        sa.CheckConstraint("max_process_points >= 1", name="ck_task_max_points"),
        sa.CheckConstraint(
            "process_points <= max_process_points", name="ck_task_points_in_range"
        ),
    )


def downgrade() -> None:
    op.drop_table("tasks")
    op.drop_table("project_tasks")
    op.drop_table("project_users")
    op.drop_table("projects")
