"""
ZenFlow MCP Tools Package.

This package provides the input models and output formatting for the
ZenFlow MCP server. Tools are organized into logical groups:
    - Task tools (add, list, toggle, delete, subtasks, focus target)
    - Timer tools (status, start/pause, reset, switch mode, durations)
    - Schulte tools (new grid, click, status, history)
    - View tools (statistics, calendar)
    - AI tools (daily review, priorities, Schulte analysis, configuration)
    - Preference tools (theme, light/dark mode)
"""

from zenflow_mcp.tools.inputs import (
    ResponseFormat,
    TaskFilter,
    TaskCreateInput,
    TaskIdInput,
    TaskListInput,
    SubtaskCreateInput,
    SubtaskToggleInput,
    FocusSetInput,
    TimerModeInput,
    TimerSettingsInput,
    SchulteClickInput,
    SchulteHistoryInput,
    CalendarInput,
    AIConfigInput,
    PreferencesInput,
)

__all__ = [
    "ResponseFormat",
    "TaskFilter",
    "TaskCreateInput",
    "TaskIdInput",
    "TaskListInput",
    "SubtaskCreateInput",
    "SubtaskToggleInput",
    "FocusSetInput",
    "TimerModeInput",
    "TimerSettingsInput",
    "SchulteClickInput",
    "SchulteHistoryInput",
    "CalendarInput",
    "AIConfigInput",
    "PreferencesInput",
]
