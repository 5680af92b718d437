"""
Project service: lifecycle and membership of projects.

Side effects on tasks (unassigning a removed member, deleting the tasks of a
deleted project) are explicit calls into the ``TaskService`` on the same
session, so they commit or roll back together with the project change.
"""

import logging
import re

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stm_core.models.projects import Project
from stm_core.models.pydantic_models.project import ProjectDraft, ProjectModel
from stm_core.models.pydantic_models.task import TaskModel
from stm_core.models.relationships import (
    project_task_association,
    project_user_association,
)
from stm_core.models.tasks import Task
from stm_core.services.errors import (
    AtomicityError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_id,
)
from stm_core.services.permissions import PermissionService
from stm_core.services.tasks import TaskService

logger = logging.getLogger(__name__)


def _first_line(text: str) -> str:
    return re.split(r"\r\n|\r|\n", text, maxsplit=1)[0]


class ProjectService:
    def __init__(
        self,
        db: AsyncSession,
        task_service: TaskService,
        permission_service: PermissionService,
    ):
        self.db = db
        self.task_service = task_service
        self.permission_service = permission_service

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _get_record(self, project_id: str) -> Project:
        project = await self.db.get(
            Project, parse_id(project_id, "Project"), populate_existing=True
        )
        if project is None:
            raise NotFoundError(f"Project '{project_id}' does not exist")
        return project

    async def _get_users(self, project_id: int) -> list[str]:
        result = await self.db.execute(
            select(project_user_association.c.user_id)
            .where(project_user_association.c.project_id == project_id)
            .order_by(project_user_association.c.position)
        )
        return list(result.scalars().all())

    async def _get_task_ids(self, project_id: int, existing_only: bool = False) -> list[str]:
        query = select(project_task_association.c.task_id).where(
            project_task_association.c.project_id == project_id
        )
        if existing_only:
            query = query.join(
                Task, Task.task_id == project_task_association.c.task_id
            )
        result = await self.db.execute(
            query.order_by(project_task_association.c.position)
        )
        return [str(t) for t in result.scalars().all()]

    async def _get_process_points(self, project_id: int) -> tuple[int, int]:
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(Task.max_process_points), 0),
                func.coalesce(func.sum(Task.process_points), 0),
            )
            .select_from(project_task_association)
            .join(Task, Task.task_id == project_task_association.c.task_id)
            .where(project_task_association.c.project_id == project_id)
        )
        total, done = result.one()
        return int(total), int(done)

    async def _to_model(self, project: Project) -> ProjectModel:
        total, done = await self._get_process_points(project.project_id)
        return ProjectModel(
            id=str(project.project_id),
            name=project.name,
            description=project.description,
            owner=project.owner,
            users=await self._get_users(project.project_id),
            task_ids=await self._get_task_ids(project.project_id),
            needs_assignment=project.needs_assignment,
            total_process_points=total,
            done_process_points=done,
        )

    async def _load(self, project_id: str) -> ProjectModel:
        return await self._to_model(await self._get_record(project_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_projects(self, user: str) -> list[ProjectModel]:
        """All projects the user is a member of, oldest first."""
        result = await self.db.execute(
            select(Project)
            .join(
                project_user_association,
                project_user_association.c.project_id == Project.project_id,
            )
            .where(project_user_association.c.user_id == user)
            .order_by(Project.project_id)
        )
        return [await self._to_model(p) for p in result.scalars().all()]

    async def get_project(self, project_id: str, user: str) -> ProjectModel:
        await self.permission_service.verify_membership_project(project_id, user)
        return await self._load(project_id)

    async def get_project_by_task(self, task_id: str, user: str) -> ProjectModel:
        result = await self.db.execute(
            select(project_task_association.c.project_id).where(
                project_task_association.c.task_id == parse_id(task_id, "Task")
            )
        )
        project_id = result.scalar_one_or_none()
        if project_id is None:
            raise NotFoundError(f"No project found for task '{task_id}'")

        return await self.get_project(str(project_id), user)

    async def get_tasks(self, project_id: str, user: str) -> list[TaskModel]:
        await self.permission_service.verify_membership_project(project_id, user)
        task_ids = await self._get_task_ids(parse_id(project_id, "Project"))
        return await self.task_service.get_tasks(task_ids, user)

    # ------------------------------------------------------------------
    # Creation and deletion
    # ------------------------------------------------------------------

    async def add_project(self, draft: ProjectDraft) -> ProjectModel:
        """
        Store a new project.

        Every requested task has to exist and must not belong to another
        project yet, otherwise nothing is stored. The owner is added to the
        members if missing.
        """
        name = _first_line(draft.name).strip()
        if not name:
            raise ValidationError("project name must not be empty")
        if not draft.description.strip():
            raise ValidationError("project description must not be empty")
        owner = draft.owner.strip()
        if not owner:
            raise ValidationError("project owner must be set")

        task_ids = [parse_id(t, "Task") for t in draft.task_ids]
        if len(set(task_ids)) != len(task_ids):
            raise ValidationError(f"task ids {draft.task_ids} contain duplicates")

        if task_ids:
            result = await self.db.execute(
                select(project_task_association.c.task_id).where(
                    project_task_association.c.task_id.in_(task_ids)
                )
            )
            used = sorted(result.scalars().all())
            if used:
                raise AtomicityError(f"Tasks {used} already belong to another project")

            result = await self.db.execute(
                select(Task.task_id).where(Task.task_id.in_(task_ids))
            )
            missing = set(task_ids) - set(result.scalars().all())
            if missing:
                raise NotFoundError(f"Tasks {sorted(missing)} do not exist")

        users = list(dict.fromkeys(u for u in draft.users if u.strip()))
        if owner not in users:
            users.append(owner)

        project = Project(
            name=name,
            description=draft.description,
            owner=owner,
            needs_assignment=draft.needs_assignment,
        )
        self.db.add(project)
        await self.db.flush()

        if users:
            await self.db.execute(
                project_user_association.insert(),
                [
                    {"project_id": project.project_id, "user_id": u, "position": i}
                    for i, u in enumerate(users)
                ],
            )
        if task_ids:
            await self._link_tasks(project.project_id, task_ids)

        logger.info(
            "Added project %s '%s' with %d tasks for owner '%s'",
            project.project_id,
            name,
            len(task_ids),
            owner,
        )
        return await self._to_model(project)

    async def _link_tasks(self, project_id: int, task_ids: list[int]) -> None:
        """Attach the tasks to the project.

        The unique task id in ``project_tasks`` rejects tasks another
        transaction attached after the checks in ``add_project``.
        """
        try:
            await self.db.execute(
                project_task_association.insert(),
                [
                    {"project_id": project_id, "task_id": t, "position": i}
                    for i, t in enumerate(task_ids)
                ],
            )
        except IntegrityError as e:
            raise AtomicityError(
                f"Tasks {task_ids} were taken by another project meanwhile"
            ) from e

    async def delete_project(self, project_id: str, requesting_user: str) -> None:
        """Delete the project and all of its tasks. Owner only."""
        await self.permission_service.verify_ownership(project_id, requesting_user)
        project = await self._get_record(project_id)

        # Tasks first, the owner's membership is needed for this
        task_ids = await self._get_task_ids(project.project_id, existing_only=True)
        if task_ids:
            await self.task_service.delete(task_ids, requesting_user)

        await self.db.execute(
            delete(project_task_association).where(
                project_task_association.c.project_id == project.project_id
            )
        )
        await self.db.execute(
            delete(project_user_association).where(
                project_user_association.c.project_id == project.project_id
            )
        )
        await self.db.delete(project)
        await self.db.flush()
        logger.info("Deleted project %s with tasks %s", project_id, task_ids)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    async def add_user(self, project_id: str, user: str, requesting_user: str) -> ProjectModel:
        await self.permission_service.verify_ownership(project_id, requesting_user)
        project = await self._get_record(project_id)

        user = user.strip()
        if not user:
            raise ValidationError("user to add must not be empty")

        users = await self._get_users(project.project_id)
        if user in users:
            raise ConflictError(f"User '{user}' is already a member of project '{project_id}'")

        result = await self.db.execute(
            select(func.coalesce(func.max(project_user_association.c.position), -1)).where(
                project_user_association.c.project_id == project.project_id
            )
        )
        position = result.scalar_one() + 1
        await self.db.execute(
            project_user_association.insert().values(
                project_id=project.project_id, user_id=user, position=position
            )
        )
        return await self._to_model(project)

    async def remove_user(
        self, project_id: str, requesting_user: str, user_to_remove: str
    ) -> ProjectModel:
        """
        Remove a member from the project.

        Allowed for the owner and for the member itself. All tasks of the
        project assigned to the removed user are unassigned. The owner cannot
        be removed.
        """
        project = await self._get_record(project_id)

        if requesting_user != project.owner and requesting_user != user_to_remove:
            raise AuthorizationError(
                f"User '{requesting_user}' may not remove '{user_to_remove}' from project '{project_id}'"
            )
        if user_to_remove == project.owner:
            raise AuthorizationError(
                f"The owner '{user_to_remove}' cannot be removed from project '{project_id}'"
            )

        users = await self._get_users(project.project_id)
        if user_to_remove not in users:
            raise NotFoundError(
                f"User '{user_to_remove}' is not a member of project '{project_id}'"
            )

        task_ids = await self._get_task_ids(project.project_id, existing_only=True)
        assigned = await self.task_service.get_assigned_task_ids(task_ids, user_to_remove)
        for task_id in assigned:
            await self.task_service.unassign_user(task_id, user_to_remove)

        await self.db.execute(
            delete(project_user_association).where(
                project_user_association.c.project_id == project.project_id,
                project_user_association.c.user_id == user_to_remove,
            )
        )
        logger.info(
            "Removed user '%s' from project %s, unassigned tasks %s",
            user_to_remove,
            project_id,
            assigned,
        )
        return await self._to_model(project)

    async def leave_project(self, project_id: str, user: str) -> ProjectModel:
        project = await self._get_record(project_id)
        if project.owner == user:
            raise AuthorizationError(
                f"The owner '{user}' cannot leave project '{project_id}', delete it instead"
            )
        return await self.remove_user(project_id, user, user)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    async def update_name(self, project_id: str, new_name: str, requesting_user: str) -> ProjectModel:
        """Set a new name. Only the first line is kept."""
        await self.permission_service.verify_ownership(project_id, requesting_user)

        name = _first_line(new_name).strip()
        if not name:
            raise ValidationError("project name must not be empty")

        project = await self._get_record(project_id)
        project.name = name
        await self.db.flush()
        return await self._to_model(project)

    async def update_description(
        self, project_id: str, new_description: str, requesting_user: str
    ) -> ProjectModel:
        await self.permission_service.verify_ownership(project_id, requesting_user)

        if not new_description.strip():
            raise ValidationError("project description must not be empty")

        project = await self._get_record(project_id)
        project.description = new_description
        await self.db.flush()
        return await self._to_model(project)


def build_services(db: AsyncSession) -> tuple[PermissionService, TaskService, ProjectService]:
    """Create the services of one request, all bound to the same session."""
    permission_service = PermissionService(db)
    task_service = TaskService(db, permission_service)
    project_service = ProjectService(db, task_service, permission_service)
    return permission_service, task_service, project_service

