# src/weekboard/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.drag import DragController
from ..tasks.insights import WeekStats
from ..tasks.sync_engine import TaskSyncEngine
from ..tasks.task_store import TaskStore
from ..tasks.week import WeekNavigator
from .ports import TaskApi


@dataclass
class AppState:
    """
    Everything one board session needs, wired once by the composition root.

    The store lives here (not in a module global) so its lifetime is the session's.
    """

    settings: Any

    api: TaskApi
    store: TaskStore
    engine: TaskSyncEngine
    navigator: WeekNavigator
    drag: DragController

    # stats of the previously displayed week, for the trend arrow
    previous_stats: WeekStats | None = None
