"""
API v2: projects. Identifiers are part of the path.
"""

from functools import partial

from fastapi import APIRouter, Depends, Query

from stm_core.api import handlers
from stm_core.api.helpers.pipeline import RequestPipeline, get_pipeline

router = APIRouter(prefix="/projects", tags=["projects"])


# Same as in v1
@router.get("")
async def get_projects(pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(handlers.get_projects)


@router.post("")
async def add_project(pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(handlers.add_project)


@router.get("/{project_id}")
async def get_project(project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)):
    return await pipeline.run(partial(handlers.get_project, project_id=project_id))


@router.delete("/{project_id}")
async def delete_project(
    project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    """Delete the project and all of its tasks. Only the owner may do this."""
    return await pipeline.run(partial(handlers.delete_project, project_id=project_id))


@router.get("/{project_id}/tasks")
async def get_project_tasks(
    project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    return await pipeline.run(
        partial(handlers.get_project_tasks, project_id=project_id)
    )


@router.post("/{project_id}/users")
async def add_user_to_project(
    project_id: str,
    user: str | None = Query(None, description="User to add"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(
        partial(handlers.add_user_to_project, project_id=project_id, user=user)
    )


@router.delete("/{project_id}/users")
async def leave_project(
    project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    """The caller leaves the project. Not possible for the owner."""
    return await pipeline.run(partial(handlers.leave_project, project_id=project_id))


@router.delete("/{project_id}/users/{user}")
async def remove_user_from_project(
    project_id: str, user: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    return await pipeline.run(
        partial(handlers.remove_user_from_project, project_id=project_id, user=user)
    )


@router.put("/{project_id}/name")
async def update_project_name(
    project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    """Rename the project to the plain text body. Only the first line is used."""
    return await pipeline.run(
        partial(handlers.update_project_name, project_id=project_id)
    )


@router.put("/{project_id}/description")
async def update_project_description(
    project_id: str, pipeline: RequestPipeline = Depends(get_pipeline)
):
    return await pipeline.run(
        partial(handlers.update_project_description, project_id=project_id)
    )
