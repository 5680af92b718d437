"""
API v2: tasks. Identifiers are part of the path.
"""

from functools import partial

from fastapi import APIRouter, Depends, Query

from stm_core.api import handlers
from stm_core.api.helpers.pipeline import RequestPipeline, get_pipeline

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def get_tasks(
    task_ids: str | None = Query(None, description="Comma separated task ids"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(partial(handlers.get_tasks, task_ids=task_ids))


@router.post("")
async def add_tasks(pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(handlers.add_tasks)


@router.get("/{task_id}/project")
async def get_project_by_task(
    task_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    return await pipeline.run(partial(handlers.get_project_by_task, task_id=task_id))


@router.post("/{task_id}/assignedUser")
async def assign_user(task_id: str, pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(partial(handlers.assign_user, task_id=task_id))


@router.delete("/{task_id}/assignedUser")
async def unassign_user(task_id: str, pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(partial(handlers.unassign_user, task_id=task_id))


@router.post("/{task_id}/processPoints")
async def set_process_points(
    task_id: str,
    process_points: str | None = Query(None),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(
        partial(
            handlers.set_process_points,
            task_id=task_id,
            process_points=process_points,
        )
    )
