"""
Pomodoro Engine.

Countdown state machine cycling WORK -> SHORT_BREAK / LONG_BREAK -> WORK.
Every fourth completed WORK interval is followed by a long break. Any
mode switch, including the automatic one on expiry, leaves the timer
paused.

The engine does no I/O and never sleeps: callers invoke `tick()` once
per elapsed second (see `zenflow_mcp.engine.ticker`).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from zenflow_mcp.constants import SESSIONS_PER_LONG_BREAK, TimerMode
from zenflow_mcp.models import TimerSettings, TimerState

logger = logging.getLogger(__name__)

SessionCallback = Callable[[int], Any]


class PomodoroEngine:
    """
    Pomodoro countdown with session accounting.

    Args:
        settings: Minutes per mode
        on_session_complete: Called with the configured WORK minutes each
            time a WORK interval runs out
    """

    def __init__(
        self,
        settings: TimerSettings | None = None,
        on_session_complete: Optional[SessionCallback] = None,
    ) -> None:
        self._settings = settings or TimerSettings()
        self._on_session_complete = on_session_complete
        self._state = TimerState(
            mode=TimerMode.WORK,
            seconds_left=self._settings.seconds_for(TimerMode.WORK),
        )

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    @property
    def mode(self) -> TimerMode:
        return self._state.mode

    @property
    def seconds_left(self) -> int:
        return self._state.seconds_left

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def sessions_completed(self) -> int:
        return self._state.sessions_completed

    @property
    def progress(self) -> float:
        """Fraction of the current mode's duration still remaining (0..1)."""
        return self._state.seconds_left / self._settings.seconds_for(self._state.mode)

    def format_clock(self) -> str:
        minutes, seconds = divmod(self._state.seconds_left, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def _update(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    def toggle(self) -> TimerState:
        """Start or pause; remaining time is untouched."""
        self._update(is_active=not self._state.is_active)
        self._check_expiry()
        return self._state

    def start(self) -> TimerState:
        if not self._state.is_active:
            self.toggle()
        return self._state

    def pause(self) -> TimerState:
        if self._state.is_active:
            self.toggle()
        return self._state

    def reset(self) -> TimerState:
        """Restore the full duration of the current mode and pause."""
        self._update(seconds_left=self._settings.seconds_for(self._state.mode), is_active=False)
        return self._state

    def switch_mode(self, mode: TimerMode | str) -> TimerState:
        """Enter `mode` with its full duration, paused."""
        mode = TimerMode(mode)
        self._update(mode=mode, seconds_left=self._settings.seconds_for(mode), is_active=False)
        logger.debug("Timer switched to %s", mode.value)
        return self._state

    def update_settings(self, settings: TimerSettings) -> TimerState:
        """
        Replace the durations.

        While paused the remaining time is recomputed from the new
        settings immediately; a running countdown keeps its remaining time
        until it is reset, switched or expires.
        """
        self._settings = settings
        if not self._state.is_active:
            self._update(seconds_left=settings.seconds_for(self._state.mode))
        return self._state

    # -------------------------------------------------------------------------
    # Clock
    # -------------------------------------------------------------------------

    def tick(self) -> TimerState:
        """Advance one second. Does nothing while paused."""
        if self._state.is_active and self._state.seconds_left > 0:
            self._update(seconds_left=self._state.seconds_left - 1)
        self._check_expiry()
        return self._state

    def _check_expiry(self) -> None:
        if not (self._state.is_active and self._state.seconds_left == 0):
            return

        if self._state.mode is TimerMode.WORK:
            completed = self._state.sessions_completed + 1
            self._update(sessions_completed=completed)
            minutes = self._settings.work
            logger.info("Focus session %d complete (%d min)", completed, minutes)
            if self._on_session_complete is not None:
                self._on_session_complete(minutes)
            next_mode = (
                TimerMode.LONG_BREAK if completed % SESSIONS_PER_LONG_BREAK == 0 else TimerMode.SHORT_BREAK
            )
            self.switch_mode(next_mode)
        else:
            self.switch_mode(TimerMode.WORK)
