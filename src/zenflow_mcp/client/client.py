"""
ZenFlow Client.

This module provides ZenFlowClient, the main entry point used by the MCP
tools. It wires the state store, the Pomodoro engine, the Schulte
exercise and the AI advisory together and owns their lifecycle:

    connect()    load state (daily auto-clear), start the one-second ticker
    disconnect() stop the ticker, close HTTP, flush state

Local operations are synchronous; only AI calls are coroutines.
"""

from __future__ import annotations

import logging
import random
import time
from datetime import date
from types import TracebackType
from typing import Any, Callable, Iterable, TypeVar

import httpx

from zenflow_mcp.ai import AIService, get_ai_service
from zenflow_mcp.ai.prompts import SCHULTE_NO_RESULTS_REPLY
from zenflow_mcp.constants import (
    SCHULTE_ANALYSIS_WINDOW,
    AIProvider,
    AppMode,
    AppTheme,
    Priority,
    TimerMode,
)
from zenflow_mcp.engine import PomodoroEngine, SchulteExercise, Ticker
from zenflow_mcp.exceptions import ZenFlowConfigurationError
from zenflow_mcp.models import (
    AISettings,
    FocusTarget,
    Preferences,
    SchulteResult,
    SessionHistoryEntry,
    Subtask,
    Task,
    TimerSettings,
    TimerState,
    now_ms,
)
from zenflow_mcp.settings import Settings, get_settings
from zenflow_mcp.state import StateStore
from zenflow_mcp.storage import JsonFileStorage, StoragePort
from zenflow_mcp.views import MonthView, Statistics, TaskProgress, build_statistics, month_view, task_progress

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ZenFlowClient")

AIFactory = Callable[[AISettings], "AIService | None"]

NO_TASKS_MESSAGE = "当前还没有待办任务，先写下你的目标吧！"
UNCHANGED_MESSAGE = "任务状态未变更，无需重复分析。继续加油！"
AI_NOT_CONFIGURED_MESSAGE = "请先在设置中配置并开启 AI 密钥。"
AI_NOT_CONFIGURED_SHORT = "请先在设置中配置 AI。"


class ZenFlowClient:
    """
    Facade over ZenFlow state and engines.

    Usage:
        async with ZenFlowClient(MemoryStorage(), tick_interval=None) as client:
            task = client.add_task("Write report", priority="high")
            client.set_focus(task.id)
            client.toggle_timer()

    Args:
        storage: Key-value persistence port
        ai_timeout: Provider request timeout in seconds
        tick_interval: Pomodoro tick period; None disables the background
            ticker (callers then drive `tick()` themselves)
        today: Local-date source for history and the daily auto-clear
        clock_ms: Epoch-millisecond source for task timestamps
        wall_clock: Seconds source for Schulte timing
        rng: Random source for Schulte grids
        seed_keys: Provider keys used to fill empty stored key slots
        ai_factory: Builds the AI service from settings (defaults to the
            provider factory using this client's HTTP connection pool)
    """

    def __init__(
        self,
        storage: StoragePort,
        *,
        ai_timeout: float = 30.0,
        tick_interval: float | None = 1.0,
        today: Callable[[], date] = date.today,
        clock_ms: Callable[[], int] = now_ms,
        wall_clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        seed_keys: dict[AIProvider, str] | None = None,
        ai_factory: AIFactory | None = None,
    ) -> None:
        self._store = StateStore(storage, today=today, clock=clock_ms, seed_keys=seed_keys)
        self._ai_timeout = ai_timeout
        self._tick_interval = tick_interval
        self._wall_clock = wall_clock
        self._rng = rng
        self._ai_factory = ai_factory

        self._timer: PomodoroEngine | None = None
        self._schulte: SchulteExercise | None = None
        self._ticker: Ticker | None = None
        self._http_client: httpx.AsyncClient | None = None
        self._last_review: str | None = None
        self._connected = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> ZenFlowClient:
        """Create a client backed by the JSON state file from settings."""
        settings = settings or get_settings()
        return cls(
            JsonFileStorage(settings.data_path),
            ai_timeout=settings.ai_timeout,
            tick_interval=settings.tick_interval,
            seed_keys=settings.seed_keys(),
            **kwargs,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Load state and start the engines."""
        if self._connected:
            return

        self._store.load()
        self._timer = PomodoroEngine(
            self._store.timer_settings,
            on_session_complete=self._store.record_focus_session,
        )
        self._schulte = SchulteExercise(
            clock=self._wall_clock,
            rng=self._rng,
            on_finish=self._store.add_schulte_result,
        )
        if self._ai_factory is None:
            self._http_client = httpx.AsyncClient(timeout=self._ai_timeout)
        if self._tick_interval:
            self._ticker = Ticker(self._tick_interval, self.tick)
            self._ticker.start()

        self._connected = True
        logger.info("ZenFlow client connected")

    async def disconnect(self) -> None:
        """Stop the ticker, close HTTP connections and flush state."""
        try:
            if self._ticker is not None:
                ticker, self._ticker = self._ticker, None
                await ticker.stop()
        finally:
            try:
                if self._http_client is not None:
                    http_client, self._http_client = self._http_client, None
                    await http_client.aclose()
            finally:
                self._store.close()
                self._connected = False
        logger.info("ZenFlow client disconnected")

    async def __aenter__(self: T) -> T:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise ZenFlowConfigurationError(
                "Client not connected. Use 'await client.connect()' or async context manager."
            )

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def timer(self) -> PomodoroEngine:
        self._ensure_connected()
        return self._timer  # type: ignore[return-value]

    @property
    def schulte(self) -> SchulteExercise:
        self._ensure_connected()
        return self._schulte  # type: ignore[return-value]

    # =========================================================================
    # Tasks
    # =========================================================================

    @property
    def tasks(self) -> list[Task]:
        return self._store.tasks

    def get_task(self, task_id: str) -> Task:
        return self._store.get_task(task_id)

    def add_task(
        self,
        text: str,
        priority: Priority | str = Priority.MEDIUM,
        tags: Iterable[str] = (),
    ) -> Task:
        return self._store.add_task(text, priority, tags)

    def toggle_task(self, task_id: str) -> Task:
        return self._store.toggle_task(task_id)

    def delete_task(self, task_id: str) -> Task:
        return self._store.delete_task(task_id)

    def add_subtask(self, task_id: str, text: str) -> Subtask:
        return self._store.add_subtask(task_id, text)

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Subtask:
        return self._store.toggle_subtask(task_id, subtask_id)

    def clear_completed(self) -> int:
        return self._store.clear_completed()

    def task_progress(self) -> TaskProgress:
        return task_progress(self._store.tasks)

    # =========================================================================
    # Focus Target
    # =========================================================================

    @property
    def focus_target(self) -> FocusTarget | None:
        return self._store.focus_target

    def set_focus(self, task_id: str, subtask_id: str | None = None) -> FocusTarget:
        """Point the timer at a task, or at one of its subtasks."""
        if subtask_id:
            return self._store.set_focus_subtask(task_id, subtask_id)
        return self._store.set_focus_task(task_id)

    def clear_focus(self) -> None:
        self._store.clear_focus()

    # =========================================================================
    # Pomodoro
    # =========================================================================

    @property
    def timer_state(self) -> TimerState:
        return self.timer.state

    @property
    def timer_settings(self) -> TimerSettings:
        return self._store.timer_settings

    def tick(self) -> TimerState:
        return self.timer.tick()

    def toggle_timer(self) -> TimerState:
        return self.timer.toggle()

    def reset_timer(self) -> TimerState:
        return self.timer.reset()

    def switch_timer_mode(self, mode: TimerMode | str) -> TimerState:
        return self.timer.switch_mode(mode)

    def set_timer_duration(self, mode: TimerMode | str, minutes: Any) -> TimerSettings:
        """
        Change one mode's duration.

        The value is parsed and clamped to [1, 120] minutes. The remaining
        time follows immediately only while the timer is paused.
        """
        settings = self._store.timer_settings.with_minutes(TimerMode(mode), minutes)
        self._store.update_timer_settings(settings)
        self.timer.update_settings(settings)
        return settings

    @property
    def history(self) -> list[SessionHistoryEntry]:
        return self._store.history

    # =========================================================================
    # Schulte
    # =========================================================================

    def new_schulte_grid(self) -> list[int]:
        return self.schulte.new_grid()

    def schulte_click(self, number: int) -> SchulteResult | None:
        return self.schulte.click(number)

    @property
    def schulte_history(self) -> list[SchulteResult]:
        return self._store.schulte_history

    # =========================================================================
    # Views
    # =========================================================================

    def statistics(self) -> Statistics:
        return build_statistics(self._store.tasks, self._store.history)

    def calendar(self, year: int, month: int) -> MonthView:
        return month_view(self._store.tasks, year, month)

    # =========================================================================
    # Preferences
    # =========================================================================

    @property
    def preferences(self) -> Preferences:
        return self._store.preferences

    def set_preferences(
        self,
        theme: AppTheme | str | None = None,
        mode: AppMode | str | None = None,
    ) -> Preferences:
        return self._store.update_preferences(theme=theme, mode=mode)

    @property
    def ai_settings(self) -> AISettings:
        return self._store.ai_settings

    def configure_ai(
        self,
        provider: AIProvider | str | None = None,
        api_key: str | None = None,
    ) -> AISettings:
        return self._store.update_ai_settings(provider=provider, api_key=api_key)

    # =========================================================================
    # AI Advisory
    # =========================================================================

    def ai_service(self) -> AIService | None:
        """The service for the selected provider, or None if it has no key."""
        settings = self._store.ai_settings
        if self._ai_factory is not None:
            return self._ai_factory(settings)
        return get_ai_service(settings, http_client=self._http_client, timeout=self._ai_timeout)

    def _require_ai_service(self, message: str) -> AIService:
        service = self.ai_service()
        if service is None:
            raise ZenFlowConfigurationError(message)
        return service

    @property
    def last_review(self) -> str | None:
        return self._last_review

    async def end_day_review(self) -> str:
        """
        Review today's tasks.

        Skips the provider when there are no tasks, or when nothing changed
        since the review already produced in this session.

        Raises:
            ZenFlowConfigurationError: If the selected provider has no key
        """
        self._ensure_connected()
        tasks = self._store.tasks
        if not tasks:
            self._last_review = NO_TASKS_MESSAGE
            return self._last_review

        fingerprint = self._store.fingerprint()
        if fingerprint == self._store.last_analyzed and self._last_review:
            self._last_review = UNCHANGED_MESSAGE
            return self._last_review

        service = self._require_ai_service(AI_NOT_CONFIGURED_MESSAGE)
        review = await service.get_end_day_review(tasks)
        self._last_review = review
        self._store.remember_analyzed(fingerprint)
        return review

    async def priority_suggestions(self) -> list[str]:
        self._ensure_connected()
        service = self._require_ai_service(AI_NOT_CONFIGURED_MESSAGE)
        return await service.get_task_priority_suggestion(self._store.tasks)

    async def schulte_analysis(self) -> str:
        """Analyse the five most recent Schulte results."""
        self._ensure_connected()
        recent = self._store.schulte_history[-SCHULTE_ANALYSIS_WINDOW:]
        if not recent:
            return SCHULTE_NO_RESULTS_REPLY
        service = self._require_ai_service(AI_NOT_CONFIGURED_SHORT)
        return await service.get_schulte_focus_analysis(recent)
