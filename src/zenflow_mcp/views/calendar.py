"""Month calendar of task activity."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence

from zenflow_mcp.models import Task


@dataclass(frozen=True)
class CalendarDay:
    day: int
    task_count: int
    all_done: bool


@dataclass(frozen=True)
class MonthView:
    year: int
    month: int
    offset: int
    days: list[CalendarDay]


def _local_date(ms: int) -> date:
    return datetime.fromtimestamp(ms / 1000).date()


def tasks_for_day(tasks: Sequence[Task], day: date) -> list[Task]:
    """Tasks created or completed on `day` (local time)."""
    return [
        t
        for t in tasks
        if _local_date(t.created_at) == day or (t.completed_at is not None and _local_date(t.completed_at) == day)
    ]


def month_view(tasks: Sequence[Task], year: int, month: int) -> MonthView:
    """
    Per-day activity for one month.

    offset is the number of blank cells before day 1 in a Sunday-first
    week layout.
    """
    first_weekday, days_in_month = calendar.monthrange(year, month)
    offset = (first_weekday + 1) % 7

    days = []
    for day in range(1, days_in_month + 1):
        day_tasks = tasks_for_day(tasks, date(year, month, day))
        days.append(
            CalendarDay(
                day=day,
                task_count=len(day_tasks),
                all_done=bool(day_tasks) and all(t.completed for t in day_tasks),
            )
        )
    return MonthView(year=year, month=month, offset=offset, days=days)
