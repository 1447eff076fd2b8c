# src/weekboard/tasks/drag.py

from __future__ import annotations

"""
Drag controller.

Turns pointer drag gestures into either a reorder inside one day or a move to
another day, and hands them to the sync engine.

Drop targets are identified by string tokens:
- a day container uses its date ("2025-01-20"),
- a task card uses the task id.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .sync_engine import TaskSyncEngine
from .task_models import DATE_TOKEN_RE, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DropKind(str, Enum):
    REORDER = "reorder"
    MOVE = "move"


@dataclass(slots=True, frozen=True)
class DropIntent:
    """What a finished drag asked the engine to do."""

    kind: DropKind
    task_id: str
    from_date: str
    to_date: str
    index: int
    ordered_ids: tuple[str, ...] = ()


def is_day_token(token: str) -> bool:
    return bool(DATE_TOKEN_RE.match(token))


def array_move(items: Sequence[T], old_index: int, new_index: int) -> list[T]:
    """Move one element; an index past the end appends."""
    out = list(items)
    item = out.pop(old_index)
    out.insert(new_index, item)
    return out


def pick_drop_target(hits: Iterable[str]) -> str | None:
    """
    Collision policy for the pointer region under the cursor.

    Task-level hits always win; a day-container hit only counts when no task card is
    hit, so reordering inside a day takes precedence over the coarser cross-day drop.
    """
    first_day: str | None = None
    for token in hits:
        if not token:
            continue
        if not is_day_token(token):
            return token
        if first_day is None:
            first_day = token
    return first_day


class DragController:
    """Idle -> Dragging (drag_start) -> Idle (drag_end / drag_cancel)."""

    def __init__(self, engine: TaskSyncEngine) -> None:
        self.engine = engine
        self.state = DragState.IDLE
        self.active_id: str | None = None
        self.active_task: Task | None = None
        self.over_id: str | None = None

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.active_id = None
        self.active_task = None
        self.over_id = None

    def _find(self, task_id: str) -> tuple[str, Task] | None:
        for day, tasks in self.engine.store.tasks_by_date().items():
            for task in tasks:
                if task.id == task_id:
                    return day, task
        return None

    def drag_start(self, task_id: str) -> Task | None:
        self.state = DragState.DRAGGING
        self.active_id = task_id
        self.over_id = None
        found = self._find(task_id)
        self.active_task = found[1] if found else None
        if self.active_task is None:
            logger.debug("drag_start: task %s is not loaded", task_id)
        return self.active_task

    def drag_over(self, hits: Iterable[str]) -> str | None:
        """Record the drop candidate for the current pointer position."""
        if self.state is not DragState.DRAGGING:
            return None
        self.over_id = pick_drop_target(hits)
        return self.over_id

    def drag_cancel(self) -> None:
        self._reset()

    def resolve_drop(self, over_id: str | None) -> DropIntent | None:
        """Compute the intent of dropping the active task on `over_id` (no side effects)."""
        active = self.active_task
        if not over_id or active is None:
            return None

        dragged_id = active.id
        if dragged_id == over_id:
            return None

        by_date = self.engine.store.tasks_by_date()
        source_date = active.scheduled_date

        over_task: Task | None = None
        if is_day_token(over_id):
            target_date = over_id
        else:
            found = self._find(over_id)
            if found is None:
                logger.debug("drop on unknown target %s ignored", over_id)
                return None
            target_date, over_task = found

        if source_date == target_date:
            tasks = by_date.get(source_date, [])
            ids = [t.id for t in tasks]
            if dragged_id not in ids:
                return None
            old_index = ids.index(dragged_id)
            new_index = ids.index(over_task.id) if over_task is not None else len(ids)
            if old_index == new_index:
                return None
            new_order = array_move(ids, old_index, new_index)
            if new_order == ids:
                return None
            return DropIntent(
                kind=DropKind.REORDER,
                task_id=dragged_id,
                from_date=source_date,
                to_date=target_date,
                index=new_order.index(dragged_id),
                ordered_ids=tuple(new_order),
            )

        target_ids = [t.id for t in by_date.get(target_date, [])]
        new_position = target_ids.index(over_task.id) if over_task is not None else len(target_ids)
        return DropIntent(
            kind=DropKind.MOVE,
            task_id=dragged_id,
            from_date=source_date,
            to_date=target_date,
            index=new_position,
        )

    async def drag_end(self, over_id: str | None = None) -> DropIntent | None:
        """
        Finish the drag. `over_id` defaults to the last drag_over() candidate.

        Engine failures propagate after the engine rolled its change back.
        """
        if over_id is None:
            over_id = self.over_id
        try:
            intent = self.resolve_drop(over_id)
        finally:
            self._reset()

        if intent is None:
            return None

        if intent.kind is DropKind.REORDER:
            await self.engine.reorder_within_day(intent.from_date, list(intent.ordered_ids))
        else:
            await self.engine.move_to_day(intent.task_id, intent.from_date, intent.to_date, intent.index)
        return intent
