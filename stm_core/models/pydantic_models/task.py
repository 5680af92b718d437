"""
Pydantic models for Task entity.

Field names are exposed in camelCase on the API (``processPoints``,
``maxProcessPoints``, ``assignedUser``).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from stm_core.models.tasks import Task


class TaskModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    process_points: int
    max_process_points: int
    geometry: str = ""
    assigned_user: str | None = None

    @classmethod
    def from_record(cls, task: Task) -> "TaskModel":
        return cls(
            id=str(task.task_id),
            process_points=task.process_points,
            max_process_points=task.max_process_points,
            geometry=task.geometry or "",
            assigned_user=task.assigned_user,
        )


class TaskDraft(BaseModel):
    """A task sent by a client for creation. Any client-side id is ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    process_points: int = 0
    max_process_points: int
    geometry: str = ""
