"""API v1 endpoint tests: identifiers in query parameters."""

from datetime import timedelta

import pytest

from stm_core.api.helpers.authentication import create_token
from stm_core.config import settings


async def test_requests_without_token_are_rejected(seed_data, test_client):
    resp = await test_client.get("/v1/projects")
    assert resp.status_code == 401
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.json()["success"] is False


async def test_expired_token_is_rejected(seed_data, test_client):
    token = create_token("Peter", settings.secret_key, timedelta(seconds=-5))
    resp = await test_client.get(
        "/v1/projects", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 401


async def test_token_as_query_parameter(seed_data, test_client):
    token = create_token("Peter", settings.secret_key, timedelta(minutes=5))
    resp = await test_client.get("/v1/projects", params={"token": token})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["1"]


async def test_get_projects(seed_data, test_client, auth_headers):
    resp = await test_client.get("/v1/projects", headers=auth_headers("Maria"))
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"

    data = resp.json()
    assert [p["id"] for p in data] == ["1", "2"]
    assert data[1]["taskIds"] == ["2", "3", "4", "5"]
    assert data[1]["needsAssignment"] is False
    assert data[1]["totalProcessPoints"] == 308
    assert data[1]["doneProcessPoints"] == 154


async def test_add_project(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/projects",
        headers=auth_headers("Peter"),
        json={
            "name": "foo\nbar\nwhatever",
            "description": "Some description",
            "owner": "Maria",
            "users": ["Maria"],
            "taskIds": ["6"],
            "needsAssignment": False,
        },
    )
    assert resp.status_code == 200

    data = resp.json()
    assert data["id"] == "3"
    assert data["name"] == "foo"
    # The caller always owns the new project
    assert data["owner"] == "Peter"
    assert data["users"] == ["Maria", "Peter"]
    assert data["needsAssignment"] is False
    assert data["totalProcessPoints"] == 100
    assert data["doneProcessPoints"] == 5


async def test_add_project_with_used_task_stores_nothing(
    seed_data, test_client, auth_headers
):
    resp = await test_client.post(
        "/v1/projects",
        headers=auth_headers("Peter"),
        json={"name": "Reuse", "description": "x", "taskIds": ["6", "1"]},
    )
    assert resp.status_code == 400

    resp = await test_client.get("/v1/projects", headers=auth_headers("Peter"))
    assert [p["id"] for p in resp.json()] == ["1"]


@pytest.mark.parametrize(
    "body",
    ['{"name": ', '{"description": "no name"}', "[]"],
    ids=["broken-json", "missing-name", "wrong-type"],
)
async def test_add_project_invalid_body(seed_data, test_client, auth_headers, body):
    resp = await test_client.post(
        "/v1/projects",
        headers={**auth_headers("Peter"), "Content-Type": "application/json"},
        content=body,
    )
    assert resp.status_code == 400


async def test_add_user_to_project(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/projects/users",
        headers=auth_headers("Peter"),
        params={"user": "Anna", "project": "1"},
    )
    assert resp.status_code == 200
    assert resp.json()["users"] == ["Peter", "Maria", "Anna"]


@pytest.mark.parametrize(
    "params",
    [{"project": "1"}, {"user": "Anna"}],
    ids=["no-user", "no-project"],
)
async def test_add_user_missing_parameter(seed_data, test_client, auth_headers, params):
    resp = await test_client.post(
        "/v1/projects/users", headers=auth_headers("Peter"), params=params
    )
    assert resp.status_code == 400
    assert "not set" in resp.json()["message"]


async def test_add_user_as_non_owner(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/projects/users",
        headers=auth_headers("Maria"),
        params={"user": "Anna", "project": "1"},
    )
    assert resp.status_code == 403


async def test_get_tasks(seed_data, test_client, auth_headers):
    resp = await test_client.get(
        "/v1/tasks", headers=auth_headers("Maria"), params={"task_ids": "5,2"}
    )
    assert resp.status_code == 200

    data = resp.json()
    assert [t["id"] for t in data] == ["5", "2"]
    assert data[0]["processPoints"] == 4
    assert data[0]["maxProcessPoints"] == 8
    assert data[0]["assignedUser"] == "Anna"


async def test_get_tasks_of_foreign_project(seed_data, test_client, auth_headers):
    resp = await test_client.get(
        "/v1/tasks", headers=auth_headers("Unknown user"), params={"task_ids": "1"}
    )
    assert resp.status_code == 403


async def test_get_tasks_without_ids(seed_data, test_client, auth_headers):
    resp = await test_client.get("/v1/tasks", headers=auth_headers("Maria"))
    assert resp.status_code == 400


async def test_add_tasks(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/tasks",
        headers=auth_headers("Peter"),
        json=[
            {"id": "ignored", "maxProcessPoints": 10, "geometry": "{}"},
            {"processPoints": 2, "maxProcessPoints": 4},
        ],
    )
    assert resp.status_code == 200

    data = resp.json()
    assert [t["id"] for t in data] == ["7", "8"]
    assert data[0]["assignedUser"] is None
    assert data[1]["processPoints"] == 2


async def test_add_tasks_out_of_range(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/tasks",
        headers=auth_headers("Peter"),
        json=[{"maxProcessPoints": 10}, {"processPoints": 11, "maxProcessPoints": 10}],
    )
    assert resp.status_code == 400

    # The valid task of the batch was not stored either
    resp = await test_client.post(
        "/v1/projects",
        headers=auth_headers("Peter"),
        json={"name": "p", "description": "d", "taskIds": ["7"]},
    )
    assert resp.status_code == 404


async def test_assign_and_unassign(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/task/assignedUser", headers=auth_headers("John"), params={"id": "3"}
    )
    assert resp.status_code == 200
    assert resp.json()["assignedUser"] == "John"

    resp = await test_client.post(
        "/v1/task/assignedUser", headers=auth_headers("Anna"), params={"id": "3"}
    )
    assert resp.status_code == 409

    resp = await test_client.delete(
        "/v1/task/assignedUser", headers=auth_headers("John"), params={"id": "3"}
    )
    assert resp.status_code == 200
    assert resp.json()["assignedUser"] is None


async def test_assign_without_id(seed_data, test_client, auth_headers):
    resp = await test_client.post("/v1/task/assignedUser", headers=auth_headers("John"))
    assert resp.status_code == 400


async def test_set_process_points(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/task/processPoints",
        headers=auth_headers("Peter"),
        params={"id": "1", "process_points": "5"},
    )
    assert resp.status_code == 200
    assert resp.json()["processPoints"] == 5

    resp = await test_client.get("/v1/projects", headers=auth_headers("Peter"))
    assert resp.json()[0]["doneProcessPoints"] == 5


@pytest.mark.parametrize(
    "points,expected_status",
    [("11", 400), ("-1", 400), ("abc", 400), ("", 400)],
    ids=["above-max", "negative", "not-a-number", "empty"],
)
async def test_set_process_points_invalid(
    seed_data, test_client, auth_headers, points, expected_status
):
    resp = await test_client.post(
        "/v1/task/processPoints",
        headers=auth_headers("Peter"),
        params={"id": "1", "process_points": points},
    )
    assert resp.status_code == expected_status

    resp = await test_client.get(
        "/v1/tasks", headers=auth_headers("Peter"), params={"task_ids": "1"}
    )
    assert resp.json()[0]["processPoints"] == 0


async def test_set_process_points_not_assigned(seed_data, test_client, auth_headers):
    resp = await test_client.post(
        "/v1/task/processPoints",
        headers=auth_headers("Maria"),
        params={"id": "1", "process_points": "5"},
    )
    assert resp.status_code == 403
