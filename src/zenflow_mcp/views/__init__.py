"""Derived, read-only views recomputed from the current state."""

from zenflow_mcp.views.statistics import Statistics, TaskProgress, build_statistics, task_progress
from zenflow_mcp.views.calendar import CalendarDay, MonthView, month_view, tasks_for_day

__all__ = [
    "Statistics",
    "TaskProgress",
    "build_statistics",
    "task_progress",
    "CalendarDay",
    "MonthView",
    "month_view",
    "tasks_for_day",
]
