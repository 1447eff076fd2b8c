# tests/test_insights.py

from __future__ import annotations

from datetime import date

from weekboard.tasks.insights import Trend, WeekStats, compute_week_stats
from weekboard.tasks.week import WeekWindow

from .conftest import TODAY
from .fakes import make_task


def test_empty_week(week: WeekWindow) -> None:
    stats = compute_week_stats([], week, today=TODAY)
    assert stats == WeekStats(completed=0, pending=0, completion_rate=0, streak=0, trend=Trend.NEUTRAL)


def test_counts_only_tasks_inside_window(week: WeekWindow) -> None:
    tasks = [
        make_task("a", "2025-01-20", 0, is_completed=True),
        make_task("b", "2025-01-20", 1),
        make_task("c", "2025-01-21", 0),
        make_task("x", "2025-01-27", 0, is_completed=True),
    ]
    stats = compute_week_stats(tasks, week, today=TODAY)
    assert (stats.completed, stats.pending, stats.completion_rate) == (1, 2, 33)


def test_streak_tolerates_today_without_completion(week: WeekWindow) -> None:
    tasks = [
        make_task("a", "2025-01-20", 0, is_completed=True),
        make_task("b", "2025-01-21", 0, is_completed=True),
        make_task("c", "2025-01-22", 0),
    ]
    assert compute_week_stats(tasks, week, today=TODAY).streak == 2


def test_streak_breaks_on_gap(week: WeekWindow) -> None:
    tasks = [
        make_task("a", "2025-01-20", 0, is_completed=True),
        make_task("c", "2025-01-22", 0, is_completed=True),
    ]
    assert compute_week_stats(tasks, week, today=TODAY).streak == 1


def test_future_week_has_no_streak(week: WeekWindow) -> None:
    tasks = [make_task("a", "2025-01-20", 0, is_completed=True)]
    assert compute_week_stats(tasks, week, today=date(2025, 1, 1)).streak == 0


def test_trend_against_previous_week(week: WeekWindow) -> None:
    tasks = [make_task("a", "2025-01-20", 0, is_completed=True), make_task("b", "2025-01-20", 1)]
    prev = WeekStats(completed=1, pending=3, completion_rate=25, streak=0, trend=Trend.NEUTRAL)

    assert compute_week_stats(tasks, week, previous=prev, today=TODAY).trend is Trend.UP
    better = WeekStats(completed=4, pending=0, completion_rate=100, streak=4, trend=Trend.UP)
    assert compute_week_stats(tasks, week, previous=better, today=TODAY).trend is Trend.DOWN
    same = WeekStats(completed=1, pending=1, completion_rate=50, streak=1, trend=Trend.UP)
    assert compute_week_stats(tasks, week, previous=same, today=TODAY).trend is Trend.NEUTRAL
