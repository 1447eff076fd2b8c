# src/weekboard/tasks/task_models.py

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

TITLE_MAX_LENGTH = 100

DATE_TOKEN_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TaskCategory(StrEnum):
    GENERAL = "general"
    MEETING = "meeting"
    URGENT = "urgent"

    @classmethod
    def from_wire(cls, raw: str | None) -> TaskCategory:
        if not raw:
            return cls.GENERAL
        try:
            return cls(raw)
        except ValueError:
            return cls.GENERAL


# python field name -> JSON key used by the task API
WIRE_KEYS: dict[str, str] = {
    "id": "id",
    "user_id": "userId",
    "title": "title",
    "description": "description",
    "scheduled_date": "scheduledDate",
    "position": "position",
    "category": "category",
    "is_completed": "isCompleted",
    "completed_at": "completedAt",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

# Fields a client may send on create / update.
EDITABLE_FIELDS = frozenset(
    {"title", "description", "scheduled_date", "category", "position", "is_completed"}
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_iso_date(value: str) -> bool:
    """True for a real calendar date written as yyyy-MM-dd."""
    if not value or not DATE_TOKEN_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _parse_ts(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


def _format_ts(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    user_id: str
    title: str
    scheduled_date: str
    position: int
    category: TaskCategory
    is_completed: bool
    created_at: datetime
    updated_at: datetime

    description: str | None = None
    completed_at: datetime | None = None

    def merged(self, **changes: Any) -> Task:
        """Return a copy with `changes` applied; unknown keys are ignored."""
        known = {f.name for f in fields(self)}
        clean = {k: v for k, v in changes.items() if k in known}
        if "category" in clean:
            clean["category"] = TaskCategory.from_wire(str(clean["category"]))
        if "position" in clean:
            clean["position"] = int(clean["position"])
        return replace(self, **clean)

    def field_values(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def task_from_wire(data: Mapping[str, Any]) -> Task:
    """Build a Task from an API payload (camelCase keys)."""
    created_at = _parse_ts(data.get("createdAt")) or utcnow()
    return Task(
        id=str(data["id"]),
        user_id=str(data.get("userId") or ""),
        title=str(data.get("title") or ""),
        description=data.get("description") or None,
        scheduled_date=str(data["scheduledDate"]),
        position=int(data.get("position") or 0),
        category=TaskCategory.from_wire(data.get("category")),
        is_completed=bool(data.get("isCompleted", False)),
        completed_at=_parse_ts(data.get("completedAt")),
        created_at=created_at,
        updated_at=_parse_ts(data.get("updatedAt")) or created_at,
    )


def task_to_wire(task: Task) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": task.id,
        "userId": task.user_id,
        "title": task.title,
        "scheduledDate": task.scheduled_date,
        "position": task.position,
        "category": task.category.value,
        "isCompleted": task.is_completed,
        "createdAt": _format_ts(task.created_at),
        "updatedAt": _format_ts(task.updated_at),
    }
    if task.description is not None:
        out["description"] = task.description
    if task.completed_at is not None:
        out["completedAt"] = _format_ts(task.completed_at)
    return out


def fields_to_wire(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate editable python field names into an API request body."""
    out: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in EDITABLE_FIELDS:
            raise KeyError(f"not an editable task field: {name}")
        if isinstance(value, TaskCategory):
            value = value.value
        out[WIRE_KEYS[name]] = value
    return out
