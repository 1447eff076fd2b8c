# src/weekboard/tasks/sync_engine.py

from __future__ import annotations

"""
Optimistic task synchronization.

Every mutating operation follows the same shape:
- build an OptimisticChange (snapshot of the affected tasks + proposed values),
- apply it to the TaskStore so observers re-render immediately,
- await the remote call,
- on failure revert to the captured snapshot and re-raise.

Operations (and loads) are serialized through one asyncio.Lock per engine, so two
rapid user actions never interleave their snapshots.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, TypeVar

from ..core.ports import TaskApi
from .errors import AuthError, NotFoundError, TaskError, ValidationError
from .task_models import EDITABLE_FIELDS, Task, TaskCategory, utcnow
from .task_store import OptimisticChange, TaskStore
from .week import WeekWindow

logger = logging.getLogger(__name__)

T = TypeVar("T")

TEMP_ID_PREFIX = "temp-"

CREATE_FIELDS = frozenset({"title", "description", "scheduled_date", "category"})


def new_temp_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(task_id: str) -> bool:
    return task_id.startswith(TEMP_ID_PREFIX)


class TaskSyncEngine:
    def __init__(
        self,
        store: TaskStore,
        api: TaskApi,
        *,
        session_valid: Callable[[], bool] | None = None,
        id_factory: Callable[[], str] = new_temp_id,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.api = api
        self._session_valid = session_valid
        self._id_factory = id_factory
        self._clock = clock
        self._lock = asyncio.Lock()
        self._window: WeekWindow | None = None

    @property
    def window(self) -> WeekWindow | None:
        """The window passed to the most recent load()."""
        return self._window

    def _require_session(self) -> None:
        if self._session_valid is not None and not self._session_valid():
            raise AuthError("No active session", status_code=401)

    async def _optimistic(
        self,
        change: OptimisticChange,
        remote: Callable[[], Awaitable[T]],
        *,
        op: str,
    ) -> T:
        self.store.apply(change)
        try:
            return await remote()
        except BaseException:
            # includes cancellation: the local change must not outlive its request
            self.store.revert(change)
            logger.warning(
                "%s failed, rolled back %d task(s): %s",
                op,
                len(change.before),
                ", ".join(change.before.keys()),
                exc_info=True,
            )
            raise

    # ---- load ----

    async def load(self, window: WeekWindow) -> bool:
        """
        Replace the store contents with the tasks of `window`.

        Never raises: failures end up in store.error and the previous contents stay.
        """
        async with self._lock:
            self._window = window
            self.store.set_loading(True)
            self.store.set_error(None)
            try:
                self._require_session()
                tasks = await self.api.list_tasks(start=window.start_key, end=window.end_key)
            except TaskError as exc:
                logger.warning("Loading %s failed: %s", window.label, exc.message)
                self.store.set_error(exc.message or "Failed to load tasks")
                return False
            except Exception as exc:
                logger.exception("Loading %s crashed", window.label)
                self.store.set_error(str(exc) or "Failed to load tasks")
                return False
            else:
                tasks.sort(key=lambda t: t.position)
                self.store.set_tasks(tasks)
                logger.debug("Loaded %d task(s) for %s", len(tasks), window.label)
                return True
            finally:
                self.store.set_loading(False)

    async def refresh(self) -> bool:
        if self._window is None:
            return False
        return await self.load(self._window)

    # ---- create / edit / delete ----

    async def create(self, fields: Mapping[str, Any]) -> Task:
        data = {k: v for k, v in fields.items() if k in CREATE_FIELDS and v is not None}
        if not data.get("title") or not data.get("scheduled_date"):
            raise ValidationError("Title and scheduled date are required")

        async with self._lock:
            self._require_session()
            temp_id = self._id_factory()
            now = self._clock()
            placeholder = Task(
                id=temp_id,
                user_id="",
                title=str(data["title"]),
                description=data.get("description"),
                scheduled_date=str(data["scheduled_date"]),
                position=0,
                category=TaskCategory.from_wire(str(data.get("category") or "")),
                is_completed=False,
                created_at=now,
                updated_at=now,
            )
            change = OptimisticChange(before={temp_id: None}, after={temp_id: placeholder})

            created = await self._optimistic(change, lambda: self.api.create_task(data), op="create")

            # swap placeholder for the confirmed task in one notification
            self.store.apply(
                OptimisticChange(
                    before={temp_id: placeholder, created.id: None},
                    after={temp_id: None, created.id: created},
                )
            )
            logger.info("Task created id=%s date=%s position=%s", created.id, created.scheduled_date, created.position)
            return created

    async def edit(self, task_id: str, changes: Mapping[str, Any] | None = None, **fields: Any) -> Task | None:
        """Merge `changes` into a loaded task; returns the reconciled task (None if not loaded)."""
        patch = dict(changes or {})
        patch.update(fields)
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"not editable: {', '.join(sorted(unknown))}")
        if not patch:
            return self.store.get(task_id)

        async with self._lock:
            self._require_session()
            prev = self.store.get(task_id)
            if prev is None:
                logger.debug("edit ignored: task %s is not loaded", task_id)
                return None

            change = OptimisticChange(before={task_id: prev}, after={task_id: prev.merged(**patch)})
            confirmed = await self._optimistic(
                change, lambda: self.api.update_task(task_id, patch), op=f"edit {task_id}"
            )
            self.store.update_task(task_id, confirmed.field_values())
            return self.store.get(task_id)

    async def complete(self, task_id: str) -> Task | None:
        return await self.edit(task_id, is_completed=True)

    async def reopen(self, task_id: str) -> Task | None:
        return await self.edit(task_id, is_completed=False)

    async def delete(self, task_id: str) -> bool:
        """Remove a loaded task; False when it was not loaded."""
        async with self._lock:
            self._require_session()
            prev = self.store.get(task_id)
            if prev is None:
                logger.debug("delete ignored: task %s is not loaded", task_id)
                return False

            change = OptimisticChange(before={task_id: prev}, after={task_id: None})
            self.store.apply(change)
            try:
                await self.api.delete_task(task_id)
            except NotFoundError:
                logger.info("Task %s was already deleted on the server", task_id)
            except BaseException:
                self.store.revert(change)
                logger.warning("delete %s failed, task restored", task_id, exc_info=True)
                raise
            return True

    # ---- ordering ----

    async def reorder_within_day(self, date: str, ordered_ids: Sequence[str]) -> None:
        """Give ordered_ids[i] position i (dense 0..n-1)."""
        ids = list(dict.fromkeys(ordered_ids))
        if not ids:
            return

        async with self._lock:
            self._require_session()
            before: dict[str, Task | None] = {}
            after: dict[str, Task | None] = {}
            for index, tid in enumerate(ids):
                task = self.store.get(tid)
                if task is None:
                    continue
                before[tid] = task
                after[tid] = task.merged(position=index)

            change = OptimisticChange(before=before, after=after)
            await self._optimistic(
                change,
                lambda: self.api.reorder_tasks(date=date, task_ids=ids),
                op=f"reorder {date}",
            )

    async def move_to_day(
        self,
        task_id: str,
        from_date: str,
        to_date: str,
        new_position: int,
    ) -> Task | None:
        """
        Move a task to `to_date` at index `new_position` of that day's current order.

        The whole target day is renumbered. On failure both the moved task and every
        renumbered task of the target day get their captured values back.
        """
        async with self._lock:
            self._require_session()
            task = self.store.get(task_id)
            if task is None:
                logger.debug("move ignored: task %s is not loaded", task_id)
                return None
            if task.scheduled_date != from_date:
                logger.debug(
                    "move %s: stated source %s differs from loaded %s",
                    task_id,
                    from_date,
                    task.scheduled_date,
                )

            target = [t for t in self.store.tasks_for_date(to_date) if t.id != task_id]
            index = max(0, min(int(new_position), len(target)))
            target.insert(index, task.merged(scheduled_date=to_date))

            before: dict[str, Task | None] = {task_id: task}
            after: dict[str, Task | None] = {}
            for pos, t in enumerate(target):
                before.setdefault(t.id, self.store.get(t.id))
                after[t.id] = t.merged(position=pos)
            ordered_ids = [t.id for t in target]

            async def _remote() -> Task:
                moved = await self.api.update_task(
                    task_id, {"scheduled_date": to_date, "position": index}
                )
                await self.api.reorder_tasks(date=to_date, task_ids=ordered_ids)
                return moved

            change = OptimisticChange(before=before, after=after)
            confirmed = await self._optimistic(change, _remote, op=f"move {task_id} -> {to_date}")
            self.store.update_task(task_id, confirmed.field_values(), position=index)
            logger.info("Task %s moved %s -> %s at %d", task_id, from_date, to_date, index)
            return self.store.get(task_id)
