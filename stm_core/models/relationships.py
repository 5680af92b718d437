"""
Association tables linking projects to their members and tasks.

Members are plain user ids from the caller's token, there is no users table.
The ``position`` columns keep the insertion order of members and tasks.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from stm_core.db.base import Base


project_user_association = Table(
    "project_users",
    Base.metadata,
    Column(
        "project_id",
        Integer,
        ForeignKey("projects.project_id"),
        primary_key=True,
    ),
    Column("user_id", String, primary_key=True, index=True),
    Column("position", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)


# task_id carries no foreign key: the batch task delete does not touch this
# table, so references to deleted tasks may remain.
project_task_association = Table(
    "project_tasks",
    Base.metadata,
    Column(
        "project_id",
        Integer,
        ForeignKey("projects.project_id"),
        primary_key=True,
    ),
    Column("task_id", Integer, primary_key=True),
    Column("position", Integer, nullable=False),
    UniqueConstraint("task_id", name="uq_project_tasks_task_id"),
)
