"""
API v1: projects. Identifiers are passed as query parameters.
"""

from functools import partial

from fastapi import APIRouter, Depends, Query

from stm_core.api import handlers
from stm_core.api.helpers.pipeline import RequestPipeline, get_pipeline

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def get_projects(pipeline: RequestPipeline = Depends(get_pipeline)):
    """List all projects the caller is a member of."""
    return await pipeline.run(handlers.get_projects)


@router.post("")
async def add_project(pipeline: RequestPipeline = Depends(get_pipeline)):
    """Create a project owned by the caller from the draft in the body."""
    return await pipeline.run(handlers.add_project)


@router.post("/users")
async def add_user_to_project(
    user: str | None = Query(None, description="User to add"),
    project: str | None = Query(None, description="Project to add the user to"),
    pipeline: RequestPipeline = Depends(get_pipeline),
):
    return await pipeline.run(
        partial(handlers.add_user_to_project, project_id=project, user=user)
    )
