"""
stm_core entry point.

Serves both API revisions (``/v1`` with query parameter ids, ``/v2`` with
path ids). Login is handled elsewhere; every API route requires a token
signed with ``settings.secret_key``.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from stm_core.config import settings, setup_logging
from stm_core.api.v1.router import router_v1
from stm_core.api.v2.router import router_v2
from stm_core.db.session import get_session_local
from stm_core.bootstrap import ensure_dummy_data
from logging import getLogger, Filter
import logging

VERSION = "0.3.0"

setup_logging()

logger = getLogger(__name__)


class HealthCheckFilter(Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("/health") == -1


logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())


app = FastAPI(
    title=settings.app_name, version=VERSION, debug=settings.debug, redirect_slashes=False
)


@app.on_event("startup")
async def startup_event():
    logger.info("--- Init simple task manager server version %s ---", VERSION)

    for route in app.routes:
        if isinstance(route, APIRoute):
            logger.info("  %-8s %s", ",".join(sorted(route.methods)), route.path)

    if settings.seed_dummy_data:
        AsyncSessionLocal = get_session_local()
        async with AsyncSessionLocal() as db:
            try:
                await ensure_dummy_data(db)
            except Exception as e:
                logger.error(f"Warning: Error while inserting dummy data: {e}")
                await db.rollback()

    logger.info("--- Startup completed, start serving ---")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("--- Server shutting down! ---")

    from stm_core.db.session import dispose_engine

    await dispose_engine()
    logger.info("--- Database connections closed. ---")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router_v1)
app.include_router(router_v2)


@app.get("/")
def read_root():
    return {"message": "Simple Task Manager", "version": VERSION}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
