"""
Operation handlers shared by both API versions.

v1 takes identifiers from query parameters and v2 from the path; both hand
them to the same handlers. A handler runs inside the request pipeline and
returns an ``ApiResult``, parameter problems are reported as 400 results so
they roll back like every other failure.
"""

import logging

import pydantic
from pydantic import TypeAdapter

from stm_core.api.helpers.pipeline import Context
from stm_core.api.helpers.responses import (
    ApiResult,
    bad_request_result,
    empty_result,
    json_result,
)
from stm_core.models.pydantic_models.project import ProjectDraft
from stm_core.models.pydantic_models.task import TaskDraft

logger = logging.getLogger(__name__)

_task_drafts = TypeAdapter(list[TaskDraft])


def _missing(name: str) -> ApiResult:
    return bad_request_result(f"parameter '{name}' not set")


# ── projects ──────────────────────────────────────────────────────────────


async def get_projects(ctx: Context) -> ApiResult:
    return json_result(await ctx.project_service.get_projects(ctx.user))


async def get_project(ctx: Context, project_id: str) -> ApiResult:
    return json_result(await ctx.project_service.get_project(project_id, ctx.user))


async def add_project(ctx: Context) -> ApiResult:
    body = await ctx.request.body()
    try:
        draft = ProjectDraft.model_validate_json(body)
    except pydantic.ValidationError as e:
        logger.error("Error reading project from request body: %s", e)
        return bad_request_result("Invalid project in request body")

    # Projects are always created for the caller
    draft.owner = ctx.user
    return json_result(await ctx.project_service.add_project(draft))


async def delete_project(ctx: Context, project_id: str) -> ApiResult:
    await ctx.project_service.delete_project(project_id, ctx.user)
    return empty_result()


async def get_project_tasks(ctx: Context, project_id: str) -> ApiResult:
    return json_result(await ctx.project_service.get_tasks(project_id, ctx.user))


async def add_user_to_project(
    ctx: Context, project_id: str | None, user: str | None
) -> ApiResult:
    if not user:
        return _missing("user")
    if not project_id:
        return _missing("project")

    project = await ctx.project_service.add_user(project_id, user, ctx.user)
    return json_result(project)


async def remove_user_from_project(
    ctx: Context, project_id: str, user: str | None
) -> ApiResult:
    if not user:
        return _missing("user")

    project = await ctx.project_service.remove_user(project_id, ctx.user, user)
    return json_result(project)


async def leave_project(ctx: Context, project_id: str) -> ApiResult:
    await ctx.project_service.leave_project(project_id, ctx.user)
    return empty_result()


async def update_project_name(ctx: Context, project_id: str) -> ApiResult:
    new_name = (await ctx.request.body()).decode("utf-8", errors="replace")
    project = await ctx.project_service.update_name(project_id, new_name, ctx.user)
    return json_result(project)


async def update_project_description(ctx: Context, project_id: str) -> ApiResult:
    new_description = (await ctx.request.body()).decode("utf-8", errors="replace")
    project = await ctx.project_service.update_description(
        project_id, new_description, ctx.user
    )
    return json_result(project)


# ── tasks ─────────────────────────────────────────────────────────────────


async def get_tasks(ctx: Context, task_ids: str | None) -> ApiResult:
    if not task_ids:
        return _missing("task_ids")

    ids = [t.strip() for t in task_ids.split(",") if t.strip()]
    return json_result(await ctx.task_service.get_tasks(ids, ctx.user))


async def add_tasks(ctx: Context) -> ApiResult:
    body = await ctx.request.body()
    try:
        drafts = _task_drafts.validate_json(body)
    except pydantic.ValidationError as e:
        logger.error("Error reading tasks from request body: %s", e)
        return bad_request_result("Invalid tasks in request body")

    return json_result(await ctx.task_service.add_tasks(drafts))


async def get_project_by_task(ctx: Context, task_id: str) -> ApiResult:
    return json_result(await ctx.project_service.get_project_by_task(task_id, ctx.user))


async def assign_user(ctx: Context, task_id: str | None) -> ApiResult:
    if not task_id:
        return _missing("id")

    task = await ctx.task_service.assign_user(task_id, ctx.user)
    logger.info("Successfully assigned user '%s' to task '%s'", ctx.user, task_id)
    return json_result(task)


async def unassign_user(ctx: Context, task_id: str | None) -> ApiResult:
    if not task_id:
        return _missing("id")

    task = await ctx.task_service.unassign_user(task_id, ctx.user)
    logger.info("Successfully unassigned user '%s' from task '%s'", ctx.user, task_id)
    return json_result(task)


async def set_process_points(
    ctx: Context, task_id: str | None, process_points: str | None
) -> ApiResult:
    if not task_id:
        return _missing("id")
    if not process_points:
        return _missing("process_points")
    try:
        points = int(process_points)
    except ValueError:
        return bad_request_result(f"parameter 'process_points' is not a number: {process_points}")

    task = await ctx.task_service.set_process_points(task_id, points, ctx.user)
    logger.info("Successfully set process points on task '%s' to %d", task_id, points)
    return json_result(task)
