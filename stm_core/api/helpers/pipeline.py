"""
Request pipeline shared by all API operations.

For every request it verifies the caller's token, opens one transaction,
creates the permission, task and project services bound to that transaction
and runs the operation handler. Once the transaction is open exactly one of
commit or rollback happens, and it happens before the response is built:

* handler returns an OK ``ApiResult``  -> commit, 200 (500 if the commit fails)
* handler returns any other result      -> rollback, that status
* handler raises a ``ServiceError``     -> rollback, the error's status
* handler raises anything else          -> rollback, 500
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request, status
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stm_core.api.helpers.authentication import verify_request
from stm_core.api.helpers.responses import (
    ApiResult,
    error_response,
    internal_error_response,
    success_response,
    unauthorized_response,
)
from stm_core.config import Settings, settings as default_settings
from stm_core.db.session import get_session_factory
from stm_core.models.pydantic_models.token import TokenModel
from stm_core.services import (
    PermissionService,
    ProjectService,
    TaskService,
    build_services,
)
from stm_core.services.errors import (
    AuthenticationError,
    PersistenceError,
    ServiceError,
)

logger = logging.getLogger(__name__)


@dataclass
class Context:
    """Everything an operation handler may use. Lives for one request."""

    request: Any
    token: TokenModel
    db: AsyncSession
    permission_service: PermissionService
    task_service: TaskService
    project_service: ProjectService

    @property
    def user(self) -> str:
        return self.token.user


Handler = Callable[[Context], Awaitable[ApiResult]]


async def _call_handler(handler: Handler, context: Context) -> ApiResult:
    try:
        return await handler(context)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Storage operation failed: {e}") from e


async def create_context(
    request: Any, token: TokenModel, session_factory: async_sessionmaker
) -> Context:
    """Start a new transaction and create service instances that all use it."""
    db = session_factory()
    try:
        # Acquire the connection now so an unreachable database fails here
        await db.connection()
    except Exception:
        await db.close()
        raise

    permission_service, task_service, project_service = build_services(db)
    return Context(
        request=request,
        token=token,
        db=db,
        permission_service=permission_service,
        task_service=task_service,
        project_service=project_service,
    )


class RequestPipeline:
    def __init__(
        self,
        request: Any,
        session_factory: async_sessionmaker,
        settings: Settings | None = None,
    ):
        self.request = request
        self.session_factory = session_factory
        self.settings = settings or default_settings

    def _describe_request(self) -> str:
        return f"{self.request.method} {self.request.url.path}"

    async def run(self, handler: Handler) -> Response:
        try:
            token = verify_request(self.request, self.settings.secret_key)
        except AuthenticationError as e:
            logger.debug("URL without valid token called: %s", self._describe_request())
            # Details stay in the log, the caller could be an attacker
            logger.error("Token verification failed: %s", e)
            return unauthorized_response()

        logger.info("Call from '%s' to %s", token.user, self._describe_request())

        try:
            context = await create_context(self.request, token, self.session_factory)
        except Exception as e:
            logger.exception("Unable to create context: %s", e)
            return internal_error_response("Unable to create context")

        try:
            return await self._handle(context, handler)
        finally:
            await context.db.close()

    async def _handle(self, context: Context, handler: Handler) -> Response:
        finished = False
        try:
            try:
                result = await _call_handler(handler, context)
            except ServiceError as e:
                logger.error(
                    "%s failed with %s: %s",
                    self._describe_request(),
                    type(e).__name__,
                    e,
                )
                status_code = e.status_code
                if self.settings.collapse_error_status:
                    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
                result = ApiResult(status_code=status_code, message=e.public_message)
            except Exception as e:
                logger.exception(
                    "Unexpected error during %s: %s", self._describe_request(), e
                )
                result = ApiResult(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    message="An error occurred",
                )

            if not result.ok:
                await self._rollback(context)
                finished = True
                return error_response(
                    message=result.message or "An error occurred",
                    status_code=result.status_code,
                )

            try:
                await context.db.commit()
            except Exception as e:
                logger.exception("Unable to commit transaction: %s", e)
                await self._rollback(context)
                finished = True
                return internal_error_response()

            finished = True
            logger.debug("Committed transaction")
            return success_response(result)
        finally:
            # Cancellation and other exits that skipped both commit and rollback
            if not finished:
                await self._rollback(context)

    async def _rollback(self, context: Context) -> None:
        logger.info("Rollback transaction of %s", self._describe_request())
        try:
            await context.db.rollback()
        except Exception as e:
            logger.exception("Error performing rollback: %s", e)


def get_pipeline(
    request: Request,
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> RequestPipeline:
    return RequestPipeline(request, session_factory)
