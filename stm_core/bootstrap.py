"""
Reference data: insert a small set of projects and tasks into an empty
database.

Used on startup when ``settings.seed_dummy_data`` is enabled, and by the test
suite as its fixture data.

  task 1   0/10   Peter    project 1 (owner Peter, members Peter, Maria)
  task 2 100/100  Maria    project 2 (owner Maria, members Maria, John,
  task 3  50/100  -                   Anna, Carl; no assignment needed)
  task 4   0/100  John     project 2
  task 5   4/8    Anna     project 2
  task 6   5/100  -        no project
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stm_core.models.projects import Project
from stm_core.models.relationships import (
    project_task_association,
    project_user_association,
)
from stm_core.models.tasks import Task

logger = logging.getLogger(__name__)

DUMMY_TASKS = [
    # (process points, max process points, assigned user)
    (0, 10, "Peter"),
    (100, 100, "Maria"),
    (50, 100, None),
    (0, 100, "John"),
    (4, 8, "Anna"),
    (5, 100, None),
]

DUMMY_PROJECTS = [
    # (name, owner, members, task indices, needs assignment)
    ("First project", "Peter", ["Peter", "Maria"], [0], True),
    ("Second project", "Maria", ["Maria", "John", "Anna", "Carl"], [1, 2, 3, 4], False),
]

DUMMY_GEOMETRY = (
    '{"type":"Feature","geometry":{"type":"Polygon",'
    '"coordinates":[[[0,0],[100,100],[100,200],[0,0]]]},"properties":null}'
)


async def ensure_dummy_data(db: AsyncSession) -> bool:
    """Insert the reference data unless any project exists.

    Returns True when data was inserted.
    """
    result = await db.execute(select(Project.project_id).limit(1))
    if result.scalar_one_or_none() is not None:
        return False

    # ── tasks ─────────────────────────────────────────────────────────
    tasks = []
    for points, max_points, assigned_user in DUMMY_TASKS:
        task = Task(
            process_points=points,
            max_process_points=max_points,
            geometry=DUMMY_GEOMETRY,
            assigned_user=assigned_user,
        )
        db.add(task)
        await db.flush()
        tasks.append(task)

    # ── projects ──────────────────────────────────────────────────────
    for name, owner, users, task_indices, needs_assignment in DUMMY_PROJECTS:
        project = Project(
            name=name,
            description=f"Description of the {name.lower()}",
            owner=owner,
            needs_assignment=needs_assignment,
        )
        db.add(project)
        await db.flush()

        await db.execute(
            project_user_association.insert(),
            [
                {"project_id": project.project_id, "user_id": u, "position": i}
                for i, u in enumerate(users)
            ],
        )
        await db.execute(
            project_task_association.insert(),
            [
                {
                    "project_id": project.project_id,
                    "task_id": tasks[t].task_id,
                    "position": i,
                }
                for i, t in enumerate(task_indices)
            ],
        )

    await db.commit()
    logger.info(
        "Inserted dummy data: %d projects, %d tasks", len(DUMMY_PROJECTS), len(tasks)
    )
    return True
