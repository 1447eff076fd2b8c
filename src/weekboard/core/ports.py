# src/weekboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync engine depends on Protocols instead of concrete implementations.
This keeps the remote backend swappable (HTTP client, in-process fakes) and makes
testing easier.
"""

from datetime import datetime
from typing import Any, Protocol, Sequence

from ..tasks.task_models import Task


class TaskApi(Protocol):
    """
    Remote task API as seen by the sync engine.

    Field mappings use python names (scheduled_date, is_completed, ...).
    Implementations raise weekboard.tasks.errors.TaskError subclasses.
    """

    async def list_tasks(self, *, start: str, end: str) -> list[Task]: ...

    async def create_task(self, fields: dict[str, Any]) -> Task: ...

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def reorder_tasks(self, *, date: str, task_ids: Sequence[str]) -> int: ...


class TaskRepo(Protocol):
    """System-of-record storage behind the task API server (scoped per user)."""

    def list_tasks(self, user_id: str, *, start: str, end: str) -> list[Task]: ...

    def create_task(
        self,
        user_id: str,
        *,
        title: str,
        scheduled_date: str,
        description: str | None = None,
        category: str | None = None,
    ) -> Task: ...

    def update_task(self, user_id: str, task_id: str, fields: dict[str, Any]) -> Task | None: ...

    def delete_task(self, user_id: str, task_id: str) -> bool: ...

    def set_position(self, user_id: str, task_id: str, position: int, *, now: datetime) -> bool: ...
