# src/weekboard/tasks/week.py

"""
Week window helpers.

Weeks start on Monday (ISO). Everything here is pure except WeekNavigator,
which only holds the current reference date.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

DAYS_PER_WEEK = 7


@dataclass(frozen=True, slots=True)
class Day:
    date: date
    day_name: str  # "MON", "TUE", ...
    day_of_month: int
    is_today: bool
    is_past: bool

    @property
    def key(self) -> str:
        """yyyy-MM-dd, the same token tasks use for scheduled_date."""
        return self.date.isoformat()


@dataclass(frozen=True, slots=True)
class WeekWindow:
    start: date  # Monday
    end: date  # Sunday
    days: tuple[Day, ...]
    label: str

    @property
    def start_key(self) -> str:
        return self.start.isoformat()

    @property
    def end_key(self) -> str:
        return self.end.isoformat()

    def contains(self, day: date | str) -> bool:
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return self.start <= day <= self.end


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_start(reference: date | datetime) -> date:
    ref = _as_date(reference)
    return ref - timedelta(days=ref.weekday())


def format_week_label(start: date, end: date) -> str:
    """
    "Jan 20 - 26, 2025" for a week inside one month,
    "Jan 27 - Feb 2, 2025" across months,
    "Dec 29, 2025 - Jan 4, 2026" across years.
    """
    if start.year != end.year:
        return f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}"
    if start.month != end.month:
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
    return f"{start:%b} {start.day} - {end.day}, {end.year}"


def compute_week_window(reference: date | datetime, *, today: date | None = None) -> WeekWindow:
    if today is None:
        today = date.today()
    start = week_start(reference)
    end = start + timedelta(days=DAYS_PER_WEEK - 1)

    days = tuple(
        Day(
            date=d,
            day_name=f"{d:%a}".upper(),
            day_of_month=d.day,
            is_today=d == today,
            is_past=d < today,
        )
        for d in (start + timedelta(days=i) for i in range(DAYS_PER_WEEK))
    )
    return WeekWindow(start=start, end=end, days=days, label=format_week_label(start, end))


def advance_week(value: date | datetime, weeks: int = 1) -> date | datetime:
    """Exactly 7 * weeks days forward (negative = back)."""
    return value + timedelta(days=DAYS_PER_WEEK * weeks)


class WeekNavigator:
    """
    Holds the reference date of the displayed week.

    `on_change` is called with the new window after every move so the caller can
    trigger a reload.
    """

    def __init__(
        self,
        reference: date | None = None,
        *,
        today: Callable[[], date] = date.today,
        on_change: Callable[[WeekWindow], None] | None = None,
    ) -> None:
        self._today = today
        self._reference = reference if reference is not None else today()
        self.on_change = on_change

    @property
    def reference(self) -> date:
        return self._reference

    def today(self) -> date:
        return self._today()

    @property
    def window(self) -> WeekWindow:
        return compute_week_window(self._reference, today=self._today())

    @property
    def is_current_week(self) -> bool:
        return week_start(self._reference) == week_start(self._today())

    def _set(self, reference: date) -> WeekWindow:
        self._reference = reference
        window = self.window
        if self.on_change is not None:
            self.on_change(window)
        return window

    def next_week(self) -> WeekWindow:
        return self._set(advance_week(self._reference, 1))

    def prev_week(self) -> WeekWindow:
        return self._set(advance_week(self._reference, -1))

    def this_week(self) -> WeekWindow:
        return self._set(self._today())

    def go_to(self, reference: date) -> WeekWindow:
        return self._set(reference)
