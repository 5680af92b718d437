from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from stm_core.db.base import Base


class Task(Base):
    __tablename__ = "tasks"

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    process_points = Column(Integer, nullable=False, default=0)
    max_process_points = Column(Integer, nullable=False)
    geometry = Column(Text, nullable=False, default="")
    assigned_user = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("process_points >= 0", name="ck_task_points_positive"),
        CheckConstraint("max_process_points >= 1", name="ck_task_max_points"),
        CheckConstraint(
            "process_points <= max_process_points", name="ck_task_points_in_range"
        ),
    )
