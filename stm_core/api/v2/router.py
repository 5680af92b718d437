"""
API v2: same operations as v1, identifying projects and tasks by path
parameters, plus project detail, removal and rename routes.
"""

from fastapi import APIRouter

from stm_core.api.v2.endpoints import projects, tasks

router_v2 = APIRouter(prefix="/v2")
router_v2.include_router(projects.router)
router_v2.include_router(tasks.router)
