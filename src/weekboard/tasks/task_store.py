# src/weekboard/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .task_models import Task

logger = logging.getLogger(__name__)

StoreObserver = Callable[["TaskStore"], None]


@dataclass(slots=True)
class OptimisticChange:
    """
    A local mutation captured as two id -> task maps.

    `before` holds the exact values seen when the change was built (None = absent),
    `after` the proposed ones. Applying writes `after`, reverting writes `before`.
    """

    before: dict[str, Task | None] = field(default_factory=dict)
    after: dict[str, Task | None] = field(default_factory=dict)

    @property
    def task_ids(self) -> list[str]:
        return list(self.after.keys())

    def is_empty(self) -> bool:
        return not self.after


class TaskStore:
    """
    In-memory state of the visible week.

    Holds the loaded tasks (keyed by id, insertion ordered), a loading flag and an
    optional error message. Every mutation is synchronous, never fails (unknown ids
    are silent no-ops) and notifies observers right after the change.

    One instance lives per session (see AppState); nothing here is module-global.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {t.id: t for t in tasks}
        self._is_loading = False
        self._error: str | None = None
        self._observers: list[StoreObserver] = []

    # ---- observation ----

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("TaskStore observer failed: %r", observer)

    # ---- reads ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def tasks_for_date(self, scheduled_date: str) -> list[Task]:
        """Tasks of one day in display order (stable sort on position)."""
        day = [t for t in self._tasks.values() if t.scheduled_date == scheduled_date]
        day.sort(key=lambda t: t.position)
        return day

    def tasks_by_date(self) -> dict[str, list[Task]]:
        grouped: dict[str, list[Task]] = {}
        for t in self._tasks.values():
            grouped.setdefault(t.scheduled_date, []).append(t)
        for day in grouped.values():
            day.sort(key=lambda t: t.position)
        return grouped

    def snapshot(self, task_ids: Iterable[str]) -> dict[str, Task | None]:
        """Current values for the given ids (None for ids that are not loaded)."""
        return {tid: self._tasks.get(tid) for tid in task_ids}

    # ---- mutations ----

    def set_tasks(self, tasks: Iterable[Task]) -> None:
        self._tasks = {t.id: t for t in tasks}
        self._notify()

    def add_task(self, task: Task) -> None:
        self._tasks[task.id] = task
        self._notify()

    def update_task(self, task_id: str, changes: Mapping[str, Any] | None = None, **fields: Any) -> None:
        current = self._tasks.get(task_id)
        if current is None:
            return
        merged = dict(changes or {})
        merged.update(fields)
        self._tasks[task_id] = current.merged(**merged)
        self._notify()

    def remove_task(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is None:
            return
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self._is_loading = bool(is_loading)
        self._notify()

    def set_error(self, error: str | None) -> None:
        self._error = error
        self._notify()

    # ---- optimistic changes ----

    def apply(self, change: OptimisticChange) -> None:
        self._write(change.after)

    def revert(self, change: OptimisticChange) -> None:
        self._write(change.before)

    def _write(self, values: Mapping[str, Task | None]) -> None:
        if not values:
            return
        for task_id, task in values.items():
            if task is None:
                self._tasks.pop(task_id, None)
            else:
                self._tasks[task_id] = task
        self._notify()
