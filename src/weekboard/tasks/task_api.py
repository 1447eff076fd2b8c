# src/weekboard/tasks/task_api.py

from __future__ import annotations

import logging
from typing import Any

from .errors import ValidationError
from .sync_engine import TaskSyncEngine
from .task_models import TITLE_MAX_LENGTH, Task, TaskCategory, is_iso_date

logger = logging.getLogger(__name__)


def validate_title(title: str | None) -> str:
    raw = title or ""
    if not raw.strip():
        raise ValidationError("Title is required")
    # length is checked on what the user typed, before stripping
    if len(raw) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be {TITLE_MAX_LENGTH} characters or less")
    return raw.strip()


def validate_task_form(
    *,
    title: str | None,
    scheduled_date: str | None,
    category: str | TaskCategory | None = TaskCategory.GENERAL,
    description: str | None = None,
) -> dict[str, Any]:
    """
    Check modal input and return normalized create fields.

    Raises ValidationError; nothing here touches the store or the network.
    """
    clean_title = validate_title(title)

    if not scheduled_date or not is_iso_date(scheduled_date):
        raise ValidationError("Scheduled date must be a date like 2025-01-20")

    if category is None or category == "":
        cat = TaskCategory.GENERAL
    else:
        try:
            cat = TaskCategory(category)
        except ValueError:
            raise ValidationError(
                f"Category must be one of: {', '.join(c.value for c in TaskCategory)}"
            ) from None

    fields: dict[str, Any] = {
        "title": clean_title,
        "scheduled_date": scheduled_date,
        "category": cat,
    }
    desc = (description or "").strip()
    if desc:
        fields["description"] = desc
    return fields


async def submit_new_task(
    engine: TaskSyncEngine,
    *,
    title: str | None,
    scheduled_date: str | None,
    category: str | TaskCategory | None = TaskCategory.GENERAL,
    description: str | None = None,
) -> Task:
    fields = validate_task_form(
        title=title,
        scheduled_date=scheduled_date,
        category=category,
        description=description,
    )
    return await engine.create(fields)


async def submit_task_edit(
    engine: TaskSyncEngine,
    task_id: str,
    *,
    title: str | None = None,
    scheduled_date: str | None = None,
    category: str | TaskCategory | None = None,
    description: str | None = None,
) -> Task | None:
    """
    Validate only the fields that were given, then edit.

    An empty description clears it.
    """
    changes: dict[str, Any] = {}
    if title is not None:
        changes["title"] = validate_title(title)
    if scheduled_date is not None:
        if not is_iso_date(scheduled_date):
            raise ValidationError("Scheduled date must be a date like 2025-01-20")
        changes["scheduled_date"] = scheduled_date
    if category is not None:
        try:
            changes["category"] = TaskCategory(category)
        except ValueError:
            raise ValidationError(
                f"Category must be one of: {', '.join(c.value for c in TaskCategory)}"
            ) from None
    if description is not None:
        changes["description"] = description.strip() or None

    if not changes:
        logger.debug("submit_task_edit: nothing to change for %s", task_id)
        return engine.store.get(task_id)
    return await engine.edit(task_id, changes)
