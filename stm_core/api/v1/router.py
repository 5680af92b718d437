"""
API v1: the first revision, identifying projects and tasks by query
parameters.
"""

from fastapi import APIRouter

from stm_core.api.v1.endpoints import projects, tasks

router_v1 = APIRouter(prefix="/v1")
router_v1.include_router(projects.router)
router_v1.include_router(tasks.router)
