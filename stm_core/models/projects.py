"""
Project model.

Members and task ids live in the association tables of
``relationships.py``; the process point totals are derived from the tasks
and never stored.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func
from stm_core.db.base import Base


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    owner = Column(String, nullable=False, index=True)

    # When set, only the assigned user may change the process points of a task
    needs_assignment = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
