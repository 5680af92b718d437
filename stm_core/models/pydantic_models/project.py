"""
Pydantic models for Project entity.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProjectModel(BaseModel):
    """
    A project as returned by the API.

    ``total_process_points`` and ``done_process_points`` are the sums of the
    max and current process points of the project's tasks.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str
    owner: str
    users: list[str]
    task_ids: list[str]
    needs_assignment: bool
    total_process_points: int = 0
    done_process_points: int = 0


class ProjectDraft(BaseModel):
    """A project to be created. The owner is set from the caller's token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str = ""
    owner: str = ""
    users: list[str] = Field(default_factory=list)
    task_ids: list[str] = Field(default_factory=list)
    needs_assignment: bool = True
