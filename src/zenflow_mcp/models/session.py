"""
Focus-session models: daily history, timer durations and timer state.
"""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import Field

from zenflow_mcp.constants import (
    DEFAULT_DURATIONS,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    TIMER_MODE_LABELS,
    TimerMode,
)
from zenflow_mcp.models.base import ZenFlowModel

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class SessionHistoryEntry(ZenFlowModel):
    """Focus minutes accumulated on one calendar day (YYYY-MM-DD)."""

    date: str
    minutes: int = 0
    # Part of the stored schema; no mutation path populates it.
    tasks_completed: int = 0

    def plus_minutes(self, minutes: int) -> SessionHistoryEntry:
        return self.model_copy(update={"minutes": self.minutes + minutes})


def parse_minutes(value: Any) -> int:
    """
    Interpret a duration the way an integer form field does.

    Strings contribute their leading integer, floats are truncated, and
    anything non-numeric (or zero) becomes 1. The result is clamped to
    [MIN_DURATION_MINUTES, MAX_DURATION_MINUTES].
    """
    number: int | None = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        number = int(match.group(1)) if match else None

    if not number:
        number = 1
    return max(MIN_DURATION_MINUTES, min(number, MAX_DURATION_MINUTES))


class TimerSettings(ZenFlowModel):
    """
    Minutes per timer mode, each within [1, 120].

    Stored keyed by the Chinese mode labels, as the browser app keys its
    settings object by TimerMode value.
    """

    work: int = Field(
        default=DEFAULT_DURATIONS[TimerMode.WORK],
        alias=TIMER_MODE_LABELS[TimerMode.WORK],
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )
    short_break: int = Field(
        default=DEFAULT_DURATIONS[TimerMode.SHORT_BREAK],
        alias=TIMER_MODE_LABELS[TimerMode.SHORT_BREAK],
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )
    long_break: int = Field(
        default=DEFAULT_DURATIONS[TimerMode.LONG_BREAK],
        alias=TIMER_MODE_LABELS[TimerMode.LONG_BREAK],
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
    )

    def minutes_for(self, mode: TimerMode) -> int:
        return getattr(self, mode.value)

    def seconds_for(self, mode: TimerMode) -> int:
        return self.minutes_for(mode) * 60

    def with_minutes(self, mode: TimerMode, value: Any) -> TimerSettings:
        """Return a copy with one mode's duration replaced (parsed and clamped)."""
        return self.model_copy(update={mode.value: parse_minutes(value)})


class TimerState(ZenFlowModel):
    """Transient Pomodoro state; never persisted."""

    mode: TimerMode = TimerMode.WORK
    seconds_left: int
    is_active: bool = False
    sessions_completed: int = 0
