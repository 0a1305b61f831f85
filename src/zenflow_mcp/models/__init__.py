"""
ZenFlow Data Models.

Pydantic models for every persisted or exchanged entity. Models are
immutable; updates produce copies.

Models:
    - Task / Subtask: To-do items with nested checklist
    - TaskFocusTarget / SubtaskFocusTarget: What the timer is attributed to
    - SessionHistoryEntry: Focus minutes per day
    - TimerSettings / TimerState: Pomodoro durations and live state
    - SchulteResult: Finished attention-exercise run
    - AISettings / Preferences: User configuration
"""

from zenflow_mcp.models.base import ZenFlowModel, now_ms
from zenflow_mcp.models.task import (
    Task,
    Subtask,
    FocusTarget,
    TaskFocusTarget,
    SubtaskFocusTarget,
    new_id,
)
from zenflow_mcp.models.session import SessionHistoryEntry, TimerSettings, TimerState, parse_minutes
from zenflow_mcp.models.schulte import SchulteResult
from zenflow_mcp.models.preferences import AISettings, Preferences

__all__ = [
    "ZenFlowModel",
    "now_ms",
    "new_id",
    "Task",
    "Subtask",
    "FocusTarget",
    "TaskFocusTarget",
    "SubtaskFocusTarget",
    "SessionHistoryEntry",
    "TimerSettings",
    "TimerState",
    "parse_minutes",
    "SchulteResult",
    "AISettings",
    "Preferences",
]
