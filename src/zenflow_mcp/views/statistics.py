"""Achievement statistics derived from tasks and focus history."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

from zenflow_mcp.constants import STATISTICS_HISTORY_DAYS
from zenflow_mcp.models import SessionHistoryEntry, Task

_MS_PER_HOUR = 1000 * 60 * 60


def _percent(part: int, whole: int) -> int:
    # half-up, not banker's rounding
    return math.floor(part / whole * 100 + 0.5)


@dataclass(frozen=True)
class Statistics:
    total_minutes: int
    completed_tasks: int
    total_tasks: int
    completion_rate: int
    avg_completion_hours: float
    recent_days: list[SessionHistoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class TaskProgress:
    percentage: int
    unfinished_count: int


def build_statistics(tasks: Sequence[Task], history: Sequence[SessionHistoryEntry]) -> Statistics:
    """
    Summarize focus time and task completion.

    completion_rate is a rounded percentage; avg_completion_hours is the
    mean creation-to-completion time of completed tasks, one decimal.
    """
    completed = [t for t in tasks if t.completed]
    with_time = [t for t in completed if t.completed_at is not None]
    avg_hours = 0.0
    if with_time:
        total_ms = sum(t.completed_at - t.created_at for t in with_time)  # type: ignore[operator]
        avg_hours = round(total_ms / len(with_time) / _MS_PER_HOUR, 1)

    return Statistics(
        total_minutes=sum(h.minutes for h in history),
        completed_tasks=len(completed),
        total_tasks=len(tasks),
        completion_rate=_percent(len(completed), len(tasks)) if tasks else 0,
        avg_completion_hours=avg_hours,
        recent_days=list(history[-STATISTICS_HISTORY_DAYS:]),
    )


def task_progress(tasks: Sequence[Task]) -> TaskProgress:
    """Share of tasks and subtasks done, plus the count of open tasks."""
    total = 0
    done = 0
    for task in tasks:
        total += 1 + len(task.subtasks)
        done += int(task.completed) + sum(1 for st in task.subtasks if st.completed)
    return TaskProgress(
        percentage=_percent(done, total) if total else 0,
        unfinished_count=sum(1 for t in tasks if not t.completed),
    )
