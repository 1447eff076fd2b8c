# src/weekboard/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.state import AppState
from ..tasks.insights import compute_week_stats
from ..tasks.task_api import submit_new_task, submit_task_edit
from ..tasks.task_models import TaskCategory
from .render import numbered_tasks, parse_day, render_stats, render_week, resolve_task_ref

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, /drag, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        TaskError from a handler propagates; the console prints it.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _split_category(args: list[str]) -> tuple[list[str], str | None]:
    """Pull a '#meeting' style token out of the words."""
    words: list[str] = []
    category: str | None = None
    for word in args:
        if word.startswith("#") and len(word) > 1 and category is None:
            category = word[1:].lower()
        else:
            words.append(word)
    return words, category


async def _reload(state: AppState) -> str:
    await state.engine.load(state.navigator.window)
    return render_week(state)


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_week(state: AppState, args: list[str]) -> str:
    return render_week(state)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    return await _reload(state)


async def cmd_next(state: AppState, args: list[str]) -> str:
    state.previous_stats = compute_week_stats(
        state.store.tasks, state.navigator.window, today=state.navigator.today()
    )
    state.navigator.next_week()
    return await _reload(state)


async def cmd_prev(state: AppState, args: list[str]) -> str:
    state.navigator.prev_week()
    state.previous_stats = None
    return await _reload(state)


async def cmd_today(state: AppState, args: list[str]) -> str:
    state.navigator.this_week()
    state.previous_stats = None
    return await _reload(state)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <day> <title...> [#general|#meeting|#urgent]
    day: today | mon..sun (visible week) | yyyy-mm-dd
    """
    if len(args) < 2:
        return "Usage: /add <day> <title...> [#meeting|#urgent]"
    day = parse_day(state, args[0])
    if day is None:
        return f"Unknown day: {args[0]}. Use today, mon..sun or yyyy-mm-dd."
    words, category = _split_category(args[1:])

    if emit:
        emit("Saving...")
    task = await submit_new_task(
        state.engine,
        title=" ".join(words),
        scheduled_date=day,
        category=category or TaskCategory.GENERAL,
    )
    return f"Added '{task.title}' on {task.scheduled_date}.\n\n{render_week(state)}"


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <n> <new title...> [#category]"""
    if len(args) < 2:
        return "Usage: /edit <n> <new title...> [#category]"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."
    words, category = _split_category(args[1:])
    await submit_task_edit(
        state.engine,
        task.id,
        title=" ".join(words) if words else None,
        category=category,
    )
    return render_week(state)


async def cmd_note(state: AppState, args: list[str]) -> str:
    """/note <n> [text...]  (no text clears the description)"""
    if not args:
        return "Usage: /note <n> [text...]"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."
    await submit_task_edit(state.engine, task.id, description=" ".join(args[1:]))
    return render_week(state)


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <n>"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."
    await state.engine.complete(task.id)
    return render_week(state)


async def cmd_undo(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /undo <n>"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."
    await state.engine.reopen(task.id)
    return render_week(state)


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n>"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."
    await state.engine.delete(task.id)
    return f"Deleted '{task.title}'.\n\n{render_week(state)}"


async def cmd_drag(state: AppState, args: list[str]) -> str:
    """
    /drag <n> <target>
    target: another task number (drop onto that card) or a day (drop at the end of that day)
    """
    if len(args) != 2:
        return "Usage: /drag <n> <task n | today | mon..sun | yyyy-mm-dd>"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No task {args[0]} in this week."

    hits: list[str] = []
    over_task = resolve_task_ref(state, args[1])
    if over_task is not None:
        hits.append(over_task.id)
    else:
        day = parse_day(state, args[1])
        if day is None:
            return f"Unknown drop target: {args[1]}."
        hits.append(day)

    state.drag.drag_start(task.id)
    state.drag.drag_over(hits)
    intent = await state.drag.drag_end()
    if intent is None:
        return "Nothing to move."
    return render_week(state)


async def cmd_order(state: AppState, args: list[str]) -> str:
    """/order <day> <n> <n> ...  (the listed tasks of that day, in the new order)"""
    if len(args) < 2:
        return "Usage: /order <day> <n> <n> ..."
    day = parse_day(state, args[0])
    if day is None:
        return f"Unknown day: {args[0]}."
    ids: list[str] = []
    for ref in args[1:]:
        task = resolve_task_ref(state, ref)
        if task is None or task.scheduled_date != day:
            return f"Task {ref} is not on {day}."
        ids.append(task.id)
    # tasks not listed keep their relative order after the listed ones
    rest = [t.id for t in state.store.tasks_for_date(day) if t.id not in ids]
    await state.engine.reorder_within_day(day, ids + rest)
    return render_week(state)


async def cmd_stats(state: AppState, args: list[str]) -> str:
    stats = compute_week_stats(
        state.store.tasks,
        state.navigator.window,
        previous=state.previous_stats,
        today=state.navigator.today(),
    )
    return render_stats(stats)


async def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = numbered_tasks(state)
    if not tasks:
        return "No tasks this week."
    return "\n".join(f"{i}. {t.scheduled_date} {t.title} (id={t.id})" for i, t in enumerate(tasks, start=1))


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("week", cmd_week, help_text="Show the current week grid.", aliases=["w"])
registry.register("refresh", cmd_refresh, help_text="Reload the current week from the server.")
registry.register("next", cmd_next, help_text="Go to next week.", aliases=["n"])
registry.register("prev", cmd_prev, help_text="Go to previous week.", aliases=["p"])
registry.register("today", cmd_today, help_text="Go back to this week.")
registry.register("add", cmd_add, help_text="Add a task: /add <day> <title> [#meeting|#urgent].", aliases=["a"])
registry.register("edit", cmd_edit, help_text="Rename / recategorize: /edit <n> <title> [#category].")
registry.register("note", cmd_note, help_text="Set or clear a description: /note <n> [text].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <n>.", aliases=["x"])
registry.register("undo", cmd_undo, help_text="Mark a task not completed: /undo <n>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n>.", aliases=["del"])
registry.register("drag", cmd_drag, help_text="Drag a task onto another task or a day: /drag <n> <target>.", aliases=["mv"])
registry.register("order", cmd_order, help_text="Reorder a day: /order <day> <n> <n> ...")
registry.register("stats", cmd_stats, help_text="Weekly stats (completed/pending/streak).")
registry.register("list", cmd_list, help_text="List task numbers with ids.")
