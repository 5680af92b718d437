"""
Request pipeline tests with a mocked session.

Checks that every outcome of a handler ends in exactly one commit or
rollback and that the session is always closed.
"""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from stm_core.api.helpers.authentication import create_token
from stm_core.api.helpers.pipeline import RequestPipeline
from stm_core.api.helpers.responses import bad_request_result, empty_result, json_result
from stm_core.config import Settings
from stm_core.services.errors import AuthorizationError, ConflictError, NotFoundError

SECRET = "pipeline-secret"


def _request(user: str | None = "Peter"):
    request = MagicMock()
    request.method = "GET"
    request.url.path = "/v2/projects"
    request.query_params = {}
    if user is None:
        request.headers = {}
    else:
        token = create_token(user, SECRET, timedelta(minutes=5))
        request.headers = {"Authorization": f"Bearer {token}"}
    return request


@pytest.fixture
def session():
    db = MagicMock()
    db.connection = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.close = AsyncMock()
    return db


@pytest.fixture
def session_factory(session):
    return MagicMock(return_value=session)


def _pipeline(session_factory, user="Peter", **overrides):
    settings = Settings(secret_key=SECRET, **overrides)
    return RequestPipeline(_request(user), session_factory, settings)


async def test_ok_result_commits(session, session_factory):
    async def handler(ctx):
        assert ctx.user == "Peter"
        return json_result({"id": "1"})

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 200
    assert json.loads(response.body) == {"id": "1"}
    assert response.headers["access-control-allow-origin"] == "*"
    session.commit.assert_awaited_once()
    session.rollback.assert_not_awaited()
    session.close.assert_awaited_once()


async def test_empty_result_has_no_body(session, session_factory):
    async def handler(ctx):
        return empty_result()

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 200
    assert response.body == b""
    session.commit.assert_awaited_once()


async def test_non_ok_result_rolls_back(session, session_factory):
    async def handler(ctx):
        return bad_request_result("parameter 'id' not set")

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 400
    assert json.loads(response.body)["message"] == "parameter 'id' not set"
    assert response.headers["access-control-allow-origin"] == "*"
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
    session.close.assert_awaited_once()


@pytest.mark.parametrize(
    "error,expected_status",
    [
        (AuthorizationError("no member"), 403),
        (NotFoundError("no project"), 404),
        (ConflictError("already assigned"), 409),
    ],
    ids=["authorization", "not-found", "conflict"],
)
async def test_service_error_rolls_back(session, session_factory, error, expected_status):
    async def handler(ctx):
        raise error

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == expected_status
    body = json.loads(response.body)
    assert body["success"] is False
    # Internal details are never sent to the caller
    assert str(error) not in body["message"]
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


async def test_service_error_collapsed_to_500(session, session_factory):
    async def handler(ctx):
        raise AuthorizationError("no member")

    response = await _pipeline(session_factory, collapse_error_status=True).run(handler)

    assert response.status_code == 500
    session.rollback.assert_awaited_once()


async def test_unexpected_exception_rolls_back(session, session_factory):
    async def handler(ctx):
        raise RuntimeError("boom")

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 500
    assert "boom" not in response.body.decode()
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
    session.close.assert_awaited_once()


async def test_commit_failure_is_500(session, session_factory):
    session.commit.side_effect = RuntimeError("disk full")

    async def handler(ctx):
        return empty_result()

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 500
    session.rollback.assert_awaited_once()
    session.close.assert_awaited_once()


async def test_missing_token_never_opens_a_session(session_factory):
    handler = AsyncMock()

    response = await _pipeline(session_factory, user=None).run(handler)

    assert response.status_code == 401
    assert response.headers["access-control-allow-origin"] == "*"
    session_factory.assert_not_called()
    handler.assert_not_awaited()


async def test_unreachable_database_is_500(session, session_factory):
    session.connection.side_effect = ConnectionRefusedError()
    handler = AsyncMock()

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 500
    handler.assert_not_awaited()
    session.close.assert_awaited_once()


async def test_handlers_share_one_session(session, session_factory):
    seen = {}

    async def handler(ctx):
        seen["db"] = ctx.db
        seen["task_db"] = ctx.task_service.db
        seen["project_db"] = ctx.project_service.db
        seen["shared_permission"] = (
            ctx.project_service.permission_service is ctx.permission_service
            and ctx.task_service.permission_service is ctx.permission_service
        )
        return empty_result()

    await _pipeline(session_factory).run(handler)

    assert seen["db"] is session
    assert seen["task_db"] is session
    assert seen["project_db"] is session
    assert seen["shared_permission"]
    session_factory.assert_called_once()


async def test_storage_error_rolls_back(session, session_factory):
    from sqlalchemy.exc import OperationalError

    async def handler(ctx):
        raise OperationalError("UPDATE tasks", {}, Exception("database is locked"))

    response = await _pipeline(session_factory).run(handler)

    assert response.status_code == 500
    assert "locked" not in response.body.decode()
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
