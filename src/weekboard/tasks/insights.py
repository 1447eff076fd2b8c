# src/weekboard/tasks/insights.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from .task_models import Task
from .week import WeekWindow


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class WeekStats:
    completed: int
    pending: int
    completion_rate: int  # percent, 0..100
    streak: int  # consecutive days with at least one completed task
    trend: Trend


def _streak(done_days: set[str], window: WeekWindow, today: date) -> int:
    if today < window.start:
        return 0
    cursor = min(today, window.end)
    # today without a completion yet does not break the streak
    if cursor == today and cursor.isoformat() not in done_days:
        cursor -= timedelta(days=1)
    n = 0
    while cursor >= window.start and cursor.isoformat() in done_days:
        n += 1
        cursor -= timedelta(days=1)
    return n


def compute_week_stats(
    tasks: Iterable[Task],
    window: WeekWindow,
    *,
    previous: WeekStats | None = None,
    today: date | None = None,
) -> WeekStats:
    if today is None:
        today = date.today()

    in_window = [t for t in tasks if window.contains(t.scheduled_date)]
    completed = sum(1 for t in in_window if t.is_completed)
    pending = len(in_window) - completed
    rate = round(completed * 100 / len(in_window)) if in_window else 0

    done_days = {t.scheduled_date for t in in_window if t.is_completed}

    trend = Trend.NEUTRAL
    if previous is not None:
        if rate > previous.completion_rate:
            trend = Trend.UP
        elif rate < previous.completion_rate:
            trend = Trend.DOWN

    return WeekStats(
        completed=completed,
        pending=pending,
        completion_rate=rate,
        streak=_streak(done_days, window, today),
        trend=trend,
    )
