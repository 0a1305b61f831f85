"""
ZenFlow Constants.

Enumerations and fixed values shared across the package. Enum values are
the strings written to storage, so they must stay stable.
"""

from __future__ import annotations

from enum import Enum


class Priority(str, Enum):
    """Task priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        return PRIORITY_LABELS[self]


PRIORITY_LABELS = {
    Priority.HIGH: "优先",
    Priority.MEDIUM: "普通",
    Priority.LOW: "稍后",
}


class TimerMode(str, Enum):
    """Pomodoro timer modes."""

    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def label(self) -> str:
        return TIMER_MODE_LABELS[self]


TIMER_MODE_LABELS = {
    TimerMode.WORK: "专注时间",
    TimerMode.SHORT_BREAK: "短休时间",
    TimerMode.LONG_BREAK: "长休时间",
}


class SchulteStatus(str, Enum):
    """Schulte exercise lifecycle."""

    IDLE = "idle"
    PLAYING = "playing"
    FINISHED = "finished"


class AIProvider(str, Enum):
    """Supported chat-completion providers."""

    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    GLM = "glm"


class AppTheme(str, Enum):
    """Visual themes."""

    MINIMALIST = "minimalist"
    YOUTHFUL = "youthful"
    BUSINESS = "business"
    NATURE = "nature"


class AppMode(str, Enum):
    """Light/dark display mode."""

    LIGHT = "light"
    DARK = "dark"


class StorageKey(str, Enum):
    """Storage keys, one per persisted concern."""

    TASKS = "zenflow_tasks_v2"
    HISTORY = "zenflow_history"
    SCHULTE_HISTORY = "zenflow_schulte_history"
    TIMER_SETTINGS = "zenflow_timer_settings"
    THEME = "zenflow_theme"
    MODE = "zenflow_mode"
    AI_SETTINGS = "zenflow_ai_settings"
    LAST_VISIT = "zenflow_last_visit"
    LAST_ANALYZED = "zenflow_last_analyzed"


# Timer
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 120
SESSIONS_PER_LONG_BREAK = 4
DEFAULT_DURATIONS = {
    TimerMode.WORK: 25,
    TimerMode.SHORT_BREAK: 5,
    TimerMode.LONG_BREAK: 15,
}

# Schulte
SCHULTE_GRID_SIZE = 5
SCHULTE_CELL_COUNT = SCHULTE_GRID_SIZE * SCHULTE_GRID_SIZE
SCHULTE_ANALYSIS_WINDOW = 5

# Statistics
STATISTICS_HISTORY_DAYS = 7
