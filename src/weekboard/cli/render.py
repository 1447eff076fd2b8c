# src/weekboard/cli/render.py

from __future__ import annotations

from ..core.state import AppState
from ..tasks.insights import Trend, WeekStats
from ..tasks.sync_engine import is_temp_id
from ..tasks.task_models import Task, TaskCategory, is_iso_date

_CATEGORY_MARK = {
    TaskCategory.GENERAL: "",
    TaskCategory.MEETING: " (meeting)",
    TaskCategory.URGENT: " (!urgent)",
}

_TREND_MARK = {Trend.UP: "↑", Trend.DOWN: "↓", Trend.NEUTRAL: "→"}

_WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


def numbered_tasks(state: AppState) -> list[Task]:
    """Visible tasks in grid order (day by day, then position); /N refers to index N-1."""
    by_date = state.store.tasks_by_date()
    out: list[Task] = []
    for day in state.navigator.window.days:
        out.extend(by_date.get(day.key, []))
    return out


def resolve_task_ref(state: AppState, ref: str) -> Task | None:
    """A 1-based number from the last grid, or a raw task id."""
    ref = ref.strip().lstrip("#")
    if ref.isdigit():
        tasks = numbered_tasks(state)
        n = int(ref)
        return tasks[n - 1] if 1 <= n <= len(tasks) else None
    return state.store.get(ref)


def parse_day(state: AppState, token: str) -> str | None:
    """'today', a weekday of the visible week (mon..sun) or yyyy-mm-dd -> date key."""
    t = token.strip().lower()
    if t == "today":
        return state.navigator.today().isoformat()
    if t[:3] in _WEEKDAYS and t.isalpha():
        return state.navigator.window.days[_WEEKDAYS.index(t[:3])].key
    if is_iso_date(t):
        return t
    return None


def render_task(n: int, task: Task) -> str:
    box = "[x]" if task.is_completed else "[ ]"
    pending = " …" if is_temp_id(task.id) else ""
    line = f"  {n:>2}. {box} {task.title}{_CATEGORY_MARK[task.category]}{pending}"
    if task.description:
        line += f"\n        {task.description}"
    return line


def render_week(state: AppState) -> str:
    window = state.navigator.window
    by_date = state.store.tasks_by_date()

    header = window.label
    if state.navigator.is_current_week:
        header += "  (this week)"
    lines = [header, "=" * len(header)]

    if state.store.is_loading:
        lines.append("Loading...")
    if state.store.error:
        lines.append(f"! {state.store.error}")

    n = 0
    for day in window.days:
        flags = " <- today" if day.is_today else ""
        lines.append(f"{day.day_name} {day.day_of_month:>2}{flags}")
        tasks = by_date.get(day.key, [])
        if not tasks:
            lines.append("      -")
        for task in tasks:
            n += 1
            lines.append(render_task(n, task))
    return "\n".join(lines)


def render_stats(stats: WeekStats) -> str:
    return (
        "Weekly stats:\n"
        f"  Completed: {stats.completed}\n"
        f"  Pending: {stats.pending}\n"
        f"  Completion: {stats.completion_rate}% {_TREND_MARK[stats.trend]}\n"
        f"  Streak: {stats.streak} day(s)"
    )
