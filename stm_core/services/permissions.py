"""
Permission checks on projects and tasks.

Pure queries on the request's session: every method either returns or raises
a ``ServiceError``. Nothing is written and nothing is retried, an
authorization failure is never transient.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stm_core.models.projects import Project
from stm_core.models.relationships import (
    project_task_association,
    project_user_association,
)
from stm_core.models.tasks import Task
from stm_core.services.errors import AuthorizationError, NotFoundError, parse_id

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _is_member(self, project_id: int, user: str) -> bool:
        result = await self.db.execute(
            select(project_user_association.c.user_id).where(
                project_user_association.c.project_id == project_id,
                project_user_association.c.user_id == user,
            )
        )
        return result.first() is not None

    async def _get_project(self, project_id: str) -> Project:
        project = await self.db.get(Project, parse_id(project_id, "Project"))
        if project is None:
            raise NotFoundError(f"Project '{project_id}' does not exist")
        return project

    async def _owning_project_id(self, task_id: str) -> int | None:
        """Id of the project holding the task, raises for unknown tasks."""
        db_task_id = parse_id(task_id, "Task")
        task_exists = await self.db.execute(
            select(Task.task_id).where(Task.task_id == db_task_id)
        )
        if task_exists.first() is None:
            raise NotFoundError(f"Task '{task_id}' does not exist")

        result = await self.db.execute(
            select(project_task_association.c.project_id).where(
                project_task_association.c.task_id == db_task_id
            )
        )
        return result.scalar_one_or_none()

    async def verify_membership_project(self, project_id: str, user: str) -> None:
        project = await self._get_project(project_id)
        if not await self._is_member(project.project_id, user):
            raise AuthorizationError(
                f"User '{user}' is not a member of project '{project_id}'"
            )

    async def verify_ownership(self, project_id: str, user: str) -> None:
        project = await self._get_project(project_id)
        if project.owner != user:
            raise AuthorizationError(
                f"User '{user}' is not the owner of project '{project_id}'"
            )

    async def verify_membership_task(self, task_id: str, user: str) -> None:
        project_id = await self._owning_project_id(task_id)
        if project_id is None or not await self._is_member(project_id, user):
            raise AuthorizationError(
                f"User '{user}' is not a member of the project of task '{task_id}'"
            )

    async def verify_membership_tasks(self, task_ids: Iterable[str], user: str) -> None:
        for task_id in task_ids:
            await self.verify_membership_task(task_id, user)

    async def verify_assignment(self, task_id: str, user: str) -> None:
        task = await self.db.get(
            Task, parse_id(task_id, "Task"), populate_existing=True
        )
        if task is None:
            raise NotFoundError(f"Task '{task_id}' does not exist")
        if task.assigned_user != user:
            raise AuthorizationError(
                f"User '{user}' is not assigned to task '{task_id}'"
            )

    async def assignment_in_task_needed(self, task_id: str) -> bool:
        """Return the assignment policy of the project owning the task."""
        project_id = await self._owning_project_id(task_id)
        if project_id is None:
            raise NotFoundError(f"Task '{task_id}' does not belong to any project")

        result = await self.db.execute(
            select(Project.needs_assignment).where(Project.project_id == project_id)
        )
        return bool(result.scalar_one())
