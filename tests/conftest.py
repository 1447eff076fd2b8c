# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from weekboard.cli.bootstrap import create_initial_state
from weekboard.core.state import AppState
from weekboard.tasks.sync_engine import TaskSyncEngine
from weekboard.tasks.task_store import TaskStore
from weekboard.tasks.week import WeekWindow, compute_week_window

from .fakes import FakeTaskApi, make_task

# Wednesday of the week Jan 20 - 26, 2025
TODAY = date(2025, 1, 22)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="weekboard-test",
        log_level="DEBUG",
        console_enabled=False,
        api_base_url="http://testserver/api",
        api_token="t-1",
        http_connect_timeout=1.0,
        http_read_timeout=1.0,
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "tasks.sqlite3",
    )


@pytest.fixture()
def week() -> WeekWindow:
    return compute_week_window(TODAY, today=TODAY)


@pytest.fixture()
def seeded_api() -> FakeTaskApi:
    """Monday has a, b, c (positions 0..2); Tuesday has d, e."""
    return FakeTaskApi(
        [
            make_task("a", "2025-01-20", 0),
            make_task("b", "2025-01-20", 1),
            make_task("c", "2025-01-20", 2),
            make_task("d", "2025-01-21", 0),
            make_task("e", "2025-01-21", 1),
        ]
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest_asyncio.fixture
async def engine(store: TaskStore, seeded_api: FakeTaskApi, week: WeekWindow) -> TaskSyncEngine:
    """Engine with the seeded week already loaded; calls are reset after the load."""
    eng = TaskSyncEngine(store, seeded_api)
    assert await eng.load(week)
    seeded_api.calls.clear()
    return eng


@pytest.fixture()
def state(settings: SimpleNamespace, seeded_api: FakeTaskApi) -> AppState:
    """AppState wired with the fake API and a fixed 'today'."""
    return create_initial_state(settings=settings, api=seeded_api, today=lambda: TODAY)
