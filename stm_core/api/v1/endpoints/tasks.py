"""
API v1: tasks. Identifiers are passed as query parameters.
"""

from functools import partial

from fastapi import APIRouter, Depends, Query

from stm_core.api import handlers
from stm_core.api.helpers.pipeline import RequestPipeline, get_pipeline

router = APIRouter(tags=["tasks"])


@router.get("/tasks")
async def get_tasks(
    task_ids: str | None = Query(None, description="Comma separated task ids"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(partial(handlers.get_tasks, task_ids=task_ids))


@router.post("/tasks")
async def add_tasks(pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(handlers.add_tasks)


@router.post("/task/assignedUser")
async def assign_user(
    id: str | None = Query(None, description="Task to assign the caller to"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(partial(handlers.assign_user, task_id=id))


@router.delete("/task/assignedUser")
async def unassign_user(
    id: str | None = Query(None, description="Task to unassign the caller from"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(partial(handlers.unassign_user, task_id=id))


@router.post("/task/processPoints")
async def set_process_points(
    id: str | None = Query(None),
    process_points: str | None = Query(None),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(
        partial(
            handlers.set_process_points, task_id=id, process_points=process_points
        )
    )
