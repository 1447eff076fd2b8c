# tests/test_http_api.py

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from weekboard.client.http_api import HttpTaskApi
from weekboard.server.app import create_app
from weekboard.server.task_repo import SqliteTaskRepo
from weekboard.tasks.drag import DragController
from weekboard.tasks.errors import (
    AuthError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from weekboard.tasks.sync_engine import TaskSyncEngine
from weekboard.tasks.task_models import TaskCategory
from weekboard.tasks.task_store import TaskStore
from weekboard.tasks.week import WeekWindow

BASE_URL = "http://testserver/api"
MON = "2025-01-20"
TUE = "2025-01-21"


@pytest_asyncio.fixture
async def api(tmp_path: Path):
    app = create_app(SqliteTaskRepo(tmp_path / "tasks.sqlite3"), {"tok": "u1"})
    client = HttpTaskApi(BASE_URL, token="tok", transport=httpx.ASGITransport(app=app))
    yield client
    await client.aclose()


def _mock_api(handler) -> HttpTaskApi:
    return HttpTaskApi(BASE_URL, token="tok", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_round_trip_against_server(api: HttpTaskApi) -> None:
    created = await api.create_task({"title": "Plan", "scheduled_date": MON, "category": TaskCategory.MEETING})
    assert created.position == 0
    assert created.category is TaskCategory.MEETING
    assert created.user_id == "u1"

    done = await api.update_task(created.id, {"is_completed": True})
    assert done.is_completed and done.completed_at is not None

    listed = await api.list_tasks(start=MON, end="2025-01-26")
    assert [t.id for t in listed] == [created.id]

    await api.delete_task(created.id)
    assert await api.list_tasks(start=MON, end="2025-01-26") == []


@pytest.mark.asyncio
async def test_server_errors_map_to_task_errors(api: HttpTaskApi) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        await api.update_task("missing", {"title": "x"})
    assert excinfo.value.status_code == 404

    with pytest.raises(NotFoundError):
        await api.delete_task("missing")

    with pytest.raises(TransientError) as excinfo:
        await api.reorder_tasks(date=MON, task_ids=["ghost"])
    assert excinfo.value.status_code == 500
    assert excinfo.value.details == ["ghost: not found"]


@pytest.mark.asyncio
async def test_bad_token_is_auth_error(tmp_path: Path) -> None:
    app = create_app(SqliteTaskRepo(tmp_path / "tasks.sqlite3"), {"tok": "u1"})
    async with HttpTaskApi(BASE_URL, token="wrong", transport=httpx.ASGITransport(app=app)) as api:
        with pytest.raises(AuthError):
            await api.list_tasks(start=MON, end=MON)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, exc_type",
    [
        (400, ValidationError),
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (422, ValidationError),
        (500, TransientError),
        (503, TransientError),
    ],
)
async def test_status_mapping(status: int, exc_type: type) -> None:
    api = _mock_api(lambda request: httpx.Response(status, json={"error": "nope"}))
    try:
        with pytest.raises(exc_type) as excinfo:
            await api.list_tasks(start=MON, end=MON)
        assert excinfo.value.message == "nope"
    finally:
        await api.aclose()


@pytest.mark.asyncio
async def test_network_failure_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_api(handler) as api:
        with pytest.raises(TransientError):
            await api.delete_task("a")


@pytest.mark.asyncio
async def test_requests_use_bearer_and_camel_case() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "updated": 2})

    async with _mock_api(handler) as api:
        assert await api.reorder_tasks(date=MON, task_ids=["a", "b"]) == 2

    req = seen[0]
    assert req.method == "PATCH"
    assert req.url.path == "/api/tasks/reorder"
    assert req.headers["Authorization"] == "Bearer tok"
    assert json.loads(req.content) == {"date": MON, "taskIds": ["a", "b"]}


@pytest.mark.asyncio
async def test_engine_end_to_end(api: HttpTaskApi, week: WeekWindow) -> None:
    store = TaskStore()
    engine = TaskSyncEngine(store, api)
    assert await engine.load(week)

    a = await engine.create({"title": "a", "scheduled_date": MON})
    b = await engine.create({"title": "b", "scheduled_date": MON})
    d = await engine.create({"title": "d", "scheduled_date": TUE})
    assert (a.position, b.position, d.position) == (0, 1, 0)

    drag = DragController(engine)
    drag.drag_start(b.id)
    await drag.drag_end(d.id)

    assert [t.id for t in store.tasks_for_date(TUE)] == [b.id, d.id]
    assert [t.id for t in store.tasks_for_date(MON)] == [a.id]

    # the server agrees with the optimistic view
    assert await engine.load(week)
    assert [(t.id, t.position) for t in store.tasks_for_date(TUE)] == [(b.id, 0), (d.id, 1)]
