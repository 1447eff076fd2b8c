# tests/test_task_api.py

from __future__ import annotations

import pytest

from weekboard.tasks.errors import ValidationError
from weekboard.tasks.sync_engine import TaskSyncEngine
from weekboard.tasks.task_api import (
    submit_new_task,
    submit_task_edit,
    validate_task_form,
)
from weekboard.tasks.task_models import TaskCategory

from .fakes import FakeTaskApi

MON = "2025-01-20"


def test_form_normalizes_fields() -> None:
    fields = validate_task_form(
        title="  Standup  ",
        scheduled_date=MON,
        category="meeting",
        description="   ",
    )
    assert fields == {"title": "Standup", "scheduled_date": MON, "category": TaskCategory.MEETING}


def test_title_of_exactly_max_length_is_accepted() -> None:
    fields = validate_task_form(title="x" * 100, scheduled_date=MON)
    assert len(fields["title"]) == 100
    assert fields["category"] is TaskCategory.GENERAL


@pytest.mark.parametrize(
    "title, scheduled_date, category",
    [
        ("", MON, "general"),
        ("   ", MON, "general"),
        (None, MON, "general"),
        ("x" * 101, MON, "general"),
        ("ok", "", "general"),
        ("ok", "20-01-2025", "general"),
        ("ok", "2025-02-30", "general"),
        ("ok", MON, "party"),
    ],
)
def test_form_rejects_bad_input(title, scheduled_date, category) -> None:
    with pytest.raises(ValidationError):
        validate_task_form(title=title, scheduled_date=scheduled_date, category=category)


@pytest.mark.asyncio
async def test_overlong_title_never_reaches_store_or_api(engine: TaskSyncEngine, seeded_api: FakeTaskApi) -> None:
    before = engine.store.tasks
    with pytest.raises(ValidationError):
        await submit_new_task(engine, title="x" * 101, scheduled_date=MON)

    assert seeded_api.calls == []
    assert engine.store.tasks == before


@pytest.mark.asyncio
async def test_submit_new_task_creates(engine: TaskSyncEngine, seeded_api: FakeTaskApi) -> None:
    task = await submit_new_task(engine, title="Review", scheduled_date=MON, category="urgent", description="PR 12")

    assert task.category is TaskCategory.URGENT
    assert task.description == "PR 12"
    assert seeded_api.calls == [
        (
            "create_task",
            {"title": "Review", "scheduled_date": MON, "category": TaskCategory.URGENT, "description": "PR 12"},
        )
    ]


@pytest.mark.asyncio
async def test_submit_edit_sends_only_given_fields(engine: TaskSyncEngine, seeded_api: FakeTaskApi) -> None:
    updated = await submit_task_edit(engine, "a", title=" New title ", description="")

    assert updated is not None
    assert updated.title == "New title"
    assert updated.description is None
    assert seeded_api.calls == [("update_task", ("a", {"title": "New title", "description": None}))]


@pytest.mark.asyncio
async def test_submit_edit_without_changes_skips_api(engine: TaskSyncEngine, seeded_api: FakeTaskApi) -> None:
    assert (await submit_task_edit(engine, "a")).id == "a"
    assert seeded_api.calls == []
