# tests/test_server.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from weekboard.server.app import create_app
from weekboard.server.task_repo import SqliteTaskRepo

AUTH = {"Authorization": "Bearer tok"}
OTHER = {"Authorization": "Bearer tok2"}
MON = "2025-01-20"


@pytest.fixture()
def repo(tmp_path: Path) -> SqliteTaskRepo:
    return SqliteTaskRepo(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def client(repo: SqliteTaskRepo) -> Iterator[TestClient]:
    app = create_app(repo, {"tok": "u1", "tok2": "u2"})
    with TestClient(app) as c:
        yield c


def _create(client: TestClient, title: str, day: str = MON, headers: dict[str, str] = AUTH) -> dict:
    r = client.post("/api/tasks", json={"title": title, "scheduledDate": day}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["task"]


def _week(client: TestClient, headers: dict[str, str] = AUTH) -> list[dict]:
    r = client.get("/api/tasks", params={"start": "2025-01-20", "end": "2025-01-26"}, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["tasks"]


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "healthy"}


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer nope"}, {"Authorization": "tok"}])
def test_requests_without_valid_token_get_401(client: TestClient, headers: dict[str, str]) -> None:
    r = client.get("/api/tasks", params={"start": MON, "end": MON}, headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}


def test_list_requires_both_bounds(client: TestClient) -> None:
    r = client.get("/api/tasks", params={"start": MON}, headers=AUTH)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing start or end date"


def test_create_appends_to_day_and_uses_camel_case(client: TestClient) -> None:
    first = _create(client, "one")
    second = _create(client, "two")
    other_day = _create(client, "three", "2025-01-21")

    assert (first["position"], second["position"], other_day["position"]) == (0, 1, 0)
    assert first["scheduledDate"] == MON
    assert first["category"] == "general"
    assert first["isCompleted"] is False
    assert "completedAt" not in first
    assert first["createdAt"] and first["updatedAt"]


def test_create_requires_title_and_date(client: TestClient) -> None:
    r = client.post("/api/tasks", json={"title": "x"}, headers=AUTH)
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.parametrize(
    "body, error",
    [
        ({"title": "   ", "scheduledDate": MON}, "Title must not be empty"),
        ({"title": "x" * 101, "scheduledDate": MON}, "Title must be 100 characters or less"),
        ({"title": "ok", "scheduledDate": "20/01/2025"}, "scheduledDate must be a date like 2025-01-20"),
    ],
)
def test_create_rejects_invalid_fields_with_400(client: TestClient, body: dict, error: str) -> None:
    r = client.post("/api/tasks", json=body, headers=AUTH)
    assert r.status_code == 400
    assert r.json() == {"error": error}
    assert _week(client) == []


def test_create_accepts_title_of_max_length(client: TestClient) -> None:
    assert len(_create(client, "x" * 100)["title"]) == 100


@pytest.mark.parametrize(
    "patch",
    [{"title": ""}, {"title": "  "}, {"title": "x" * 101}, {"position": -5}, {"scheduledDate": "soon"}],
)
def test_patch_rejects_invalid_fields_and_keeps_task(client: TestClient, patch: dict) -> None:
    task = _create(client, "keep me")

    r = client.patch(f"/api/tasks/{task['id']}", json=patch, headers=AUTH)

    assert r.status_code == 400
    assert "error" in r.json()
    [stored] = _week(client)
    assert (stored["title"], stored["position"], stored["scheduledDate"]) == ("keep me", 0, MON)


def test_list_is_scoped_to_user_and_window(client: TestClient) -> None:
    _create(client, "mine")
    _create(client, "later", "2025-01-27")
    _create(client, "theirs", headers=OTHER)

    assert [t["title"] for t in _week(client)] == ["mine"]
    assert [t["title"] for t in _week(client, OTHER)] == ["theirs"]


def test_patch_completion_stamps_and_clears_completed_at(client: TestClient) -> None:
    task = _create(client, "one")

    r = client.patch(f"/api/tasks/{task['id']}", json={"isCompleted": True}, headers=AUTH)
    assert r.status_code == 200
    done = r.json()["task"]
    assert done["isCompleted"] is True
    assert done["completedAt"]
    assert done["updatedAt"] >= task["updatedAt"]

    r = client.patch(f"/api/tasks/{task['id']}", json={"isCompleted": False, "title": "renamed"}, headers=AUTH)
    reopened = r.json()["task"]
    assert reopened["isCompleted"] is False
    assert "completedAt" not in reopened
    assert reopened["title"] == "renamed"


def test_patch_and_delete_unknown_task_are_404(client: TestClient) -> None:
    r = client.patch("/api/tasks/missing", json={"title": "x"}, headers=AUTH)
    assert r.status_code == 404
    assert r.json() == {"error": "Task not found"}
    assert client.delete("/api/tasks/missing", headers=AUTH).status_code == 404


def test_other_users_task_is_invisible(client: TestClient) -> None:
    task = _create(client, "mine")
    assert client.delete(f"/api/tasks/{task['id']}", headers=OTHER).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=AUTH).json() == {"success": True}
    assert _week(client) == []


def test_reorder_sets_dense_positions(client: TestClient) -> None:
    ids = [_create(client, name)["id"] for name in ("a", "b", "c")]

    r = client.patch(
        "/api/tasks/reorder",
        json={"date": MON, "taskIds": [ids[2], ids[0], ids[1]]},
        headers=AUTH,
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "updated": 3}
    assert [t["title"] for t in _week(client)] == ["c", "a", "b"]
    assert [t["position"] for t in _week(client)] == [0, 1, 2]


def test_reorder_reports_failures_but_applies_the_rest(client: TestClient) -> None:
    a = _create(client, "a")["id"]
    b = _create(client, "b")["id"]

    r = client.patch("/api/tasks/reorder", json={"date": MON, "taskIds": [b, "ghost", a]}, headers=AUTH)
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Failed to update some positions"
    assert body["details"] == ["ghost: not found"]
    assert [t["title"] for t in _week(client)] == ["b", "a"]


def test_reorder_rejects_malformed_body(client: TestClient) -> None:
    r = client.patch("/api/tasks/reorder", json={"date": MON}, headers=AUTH)
    assert r.status_code == 400
    r = client.patch("/api/tasks/reorder", json={"date": MON, "taskIds": "nope"}, headers=AUTH)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"
