# src/weekboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (HTTP API, store, engine, drag).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from ..client.http_api import HttpTaskApi, make_timeout
from ..config import get_settings
from ..core.ports import TaskApi
from ..core.state import AppState
from ..tasks.drag import DragController
from ..tasks.sync_engine import TaskSyncEngine
from ..tasks.task_store import TaskStore
from ..tasks.week import WeekNavigator

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    api: TaskApi | None = None,
    session_valid: Callable[[], bool] | None = None,
    today: Callable[[], date] = date.today,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and the API injectable makes the app easier to test and avoids
    hidden global config reads. If settings is None, falls back to get_settings().
    Without an explicit api, an HttpTaskApi is built and the session counts as valid
    only while an API token is configured.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if api is None:
        token = getattr(settings, "api_token", None)
        api = HttpTaskApi(
            settings.api_base_url,
            token=token,
            timeout=make_timeout(settings.http_connect_timeout, settings.http_read_timeout),
        )
        if session_valid is None:
            def session_valid() -> bool:
                return bool(getattr(settings, "api_token", None))

        logger.info("Using task API at %s (token=%s)", settings.api_base_url, "set" if token else "missing")

    store = TaskStore()
    engine = TaskSyncEngine(store, api, session_valid=session_valid)
    return AppState(
        settings=settings,
        api=api,
        store=store,
        engine=engine,
        navigator=WeekNavigator(today=today),
        drag=DragController(engine),
    )


async def close_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    aclose = getattr(state.api, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.debug("Task API client close failed.", exc_info=True)
