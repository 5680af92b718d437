"""
Task service: creation, assignment, process points and deletion of tasks.

A task does not know its project. The link is held by the project
(``project_tasks``), so creating tasks is independent of any project and
project level checks go through the ``PermissionService``.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stm_core.models.pydantic_models.task import TaskDraft, TaskModel
from stm_core.models.tasks import Task
from stm_core.services.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_id,
)
from stm_core.services.permissions import PermissionService

logger = logging.getLogger(__name__)


def _verify_points_range(process_points: int, max_process_points: int) -> None:
    if (
        process_points < 0
        or max_process_points < 1
        or max_process_points < process_points
    ):
        raise ValidationError(
            f"process points of task are out of range ({process_points} / {max_process_points})"
        )


class TaskService:
    def __init__(self, db: AsyncSession, permission_service: PermissionService):
        self.db = db
        self.permission_service = permission_service

    async def _get_task(self, task_id: str) -> Task:
        task = await self.db.get(
            Task, parse_id(task_id, "Task"), populate_existing=True
        )
        if task is None:
            raise NotFoundError(f"Task '{task_id}' does not exist")
        return task

    async def get_tasks(self, task_ids: Sequence[str], requesting_user: str) -> list[TaskModel]:
        """Return the tasks in the order of ``task_ids``.

        The requesting user has to be a member of the projects of all tasks.
        """
        await self.permission_service.verify_membership_tasks(task_ids, requesting_user)
        return [TaskModel.from_record(await self._get_task(t)) for t in task_ids]

    async def add_tasks(self, new_tasks: Sequence[TaskDraft]) -> list[TaskModel]:
        """Validate and store all tasks, or none of them."""
        for draft in new_tasks:
            _verify_points_range(draft.process_points, draft.max_process_points)

        records = []
        for draft in new_tasks:
            task = Task(
                process_points=draft.process_points,
                max_process_points=draft.max_process_points,
                geometry=draft.geometry,
            )
            self.db.add(task)
            await self.db.flush()
            records.append(task)

        logger.debug("Added %d tasks", len(records))
        return [TaskModel.from_record(t) for t in records]

    async def assign_user(self, task_id: str, user: str) -> TaskModel:
        await self.permission_service.verify_membership_task(task_id, user)

        # Only an unassigned task may be taken. The condition is part of the
        # UPDATE so a concurrent assignment cannot overwrite this one.
        result = await self.db.execute(
            update(Task)
            .where(
                Task.task_id == parse_id(task_id, "Task"),
                Task.assigned_user.is_(None),
            )
            .values(assigned_user=user)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            task = await self._get_task(task_id)
            raise ConflictError(
                f"task {task_id} has already an assigned user ('{task.assigned_user}'), cannot overwrite"
            )

        return TaskModel.from_record(await self._get_task(task_id))

    async def unassign_user(self, task_id: str, requesting_user: str) -> TaskModel:
        """Release the assignment. Only the assigned user may do this,
        independent of the project's assignment policy."""
        await self.permission_service.verify_assignment(task_id, requesting_user)

        task = await self._get_task(task_id)
        task.assigned_user = None
        await self.db.flush()
        return TaskModel.from_record(task)

    async def set_process_points(
        self, task_id: str, new_points: int, requesting_user: str
    ) -> TaskModel:
        """
        Update the process points of a task.

        When the task's project needs an assignment, only the assigned user
        may do this. Otherwise any member of the project may.
        """
        needs_assignment = await self.permission_service.assignment_in_task_needed(task_id)
        if needs_assignment:
            await self.permission_service.verify_assignment(task_id, requesting_user)
        else:
            await self.permission_service.verify_membership_task(task_id, requesting_user)

        task = await self._get_task(task_id)

        # New points have to be within [0, max_process_points]
        if new_points < 0 or task.max_process_points < new_points:
            raise ValidationError(
                f"process points {new_points} out of range [0, {task.max_process_points}]"
            )

        task.process_points = new_points
        await self.db.flush()
        return TaskModel.from_record(task)

    async def delete(self, task_ids: Sequence[str], requesting_user: str) -> None:
        """
        Delete the given tasks if the requesting user is a member of their
        projects.

        WARNING: the project -> task relation is not checked or cleaned up, a
        project may afterwards reference tasks that no longer exist. Delete
        whole projects through ``ProjectService.delete_project`` instead.
        """
        await self.permission_service.verify_membership_tasks(task_ids, requesting_user)

        db_ids = [parse_id(t, "Task") for t in task_ids]
        await self.db.execute(
            delete(Task)
            .where(Task.task_id.in_(db_ids))
            .execution_options(synchronize_session="fetch")
        )
        logger.debug("Deleted tasks %s", db_ids)

    async def get_assigned_task_ids(self, task_ids: Sequence[str], user: str) -> list[str]:
        """Ids out of ``task_ids`` currently assigned to ``user``. No permission check."""
        db_ids = [parse_id(t, "Task") for t in task_ids]
        if not db_ids:
            return []
        result = await self.db.execute(
            select(Task.task_id)
            .where(Task.task_id.in_(db_ids), Task.assigned_user == user)
            .order_by(Task.task_id)
        )
        return [str(t) for t in result.scalars().all()]
