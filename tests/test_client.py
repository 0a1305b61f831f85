"""
ZenFlow Client Tests.

This module tests the client facade end to end:
- Connect/disconnect lifecycle and the background ticker
- Pomodoro sessions crediting history and tasks
- Timer duration changes
- AI review, priorities and Schulte analysis orchestration
- Construction from settings
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from zenflow_mcp.ai import DEEPSEEK, ChatCompletionService
from zenflow_mcp.ai.prompts import SCHULTE_NO_RESULTS_REPLY
from zenflow_mcp.client import ZenFlowClient
from zenflow_mcp.client.client import (
    AI_NOT_CONFIGURED_MESSAGE,
    AI_NOT_CONFIGURED_SHORT,
    NO_TASKS_MESSAGE,
    UNCHANGED_MESSAGE,
)
from zenflow_mcp.constants import StorageKey, TimerMode
from zenflow_mcp.engine import Ticker
from zenflow_mcp.exceptions import ZenFlowConfigurationError
from zenflow_mcp.settings import Settings
from zenflow_mcp.storage import MemoryStorage
from tests.conftest import TODAY, FakeClock, MockAIService, SchulteResultFactory


pytestmark = [pytest.mark.unit]


def run(client: ZenFlowClient, seconds: int) -> None:
    for _ in range(seconds):
        client.tick()


# =============================================================================
# Lifecycle
# =============================================================================


@pytest.mark.lifecycle
class TestLifecycle:
    """Tests for connecting and disconnecting."""

    async def test_engines_require_connect(self, memory_storage: MemoryStorage):
        """Test engine access before connect is refused."""
        client = ZenFlowClient(memory_storage, tick_interval=None)

        assert client.is_connected is False
        with pytest.raises(ZenFlowConfigurationError):
            client.timer
        with pytest.raises(ZenFlowConfigurationError):
            client.schulte

    async def test_context_manager(self, memory_storage: MemoryStorage):
        """Test the async context manager connects and flushes on exit."""
        async with ZenFlowClient(memory_storage, tick_interval=None, today=lambda: TODAY) as client:
            assert client.is_connected is True
            client.add_task("Inside")

        assert client.is_connected is False
        for key in StorageKey:
            assert key.value in memory_storage.data

    async def test_connect_is_idempotent(self, client: ZenFlowClient):
        """Test connecting twice keeps the same engines."""
        timer = client.timer
        await client.connect()

        assert client.timer is timer

    async def test_timer_starts_fresh_on_connect(self, client: ZenFlowClient):
        """Test a connected client starts paused in WORK with stored durations."""
        state = client.timer_state

        assert state.mode is TimerMode.WORK
        assert state.seconds_left == 1500
        assert state.is_active is False
        assert state.sessions_completed == 0

    async def test_background_ticker_drives_timer(self, memory_storage: MemoryStorage):
        """Test the ticker advances a running timer without explicit ticks."""
        client = ZenFlowClient(memory_storage, tick_interval=0.01, today=lambda: TODAY, ai_factory=lambda s: None)
        await client.connect()
        try:
            client.toggle_timer()
            await asyncio.sleep(0.2)
            assert client.timer_state.seconds_left < 1500
        finally:
            await client.disconnect()

    @pytest.mark.errors
    async def test_disconnect_flushes_when_ticker_stop_fails(self, memory_storage: MemoryStorage, monkeypatch):
        """Test state is still flushed and the client marked disconnected if stopping the ticker raises."""
        client = ZenFlowClient(memory_storage, tick_interval=60, today=lambda: TODAY)
        await client.connect()
        client.add_task("Keep me")

        async def broken_stop() -> None:
            raise RuntimeError("stop failed")

        ticker, http = client._ticker, client._http_client
        monkeypatch.setattr(ticker, "stop", broken_stop)

        with pytest.raises(RuntimeError):
            await client.disconnect()

        assert client.is_connected is False
        assert http.is_closed is True
        stored = json.loads(memory_storage.data[StorageKey.TASKS.value])
        assert [t["text"] for t in stored] == ["Keep me"]

        monkeypatch.undo()
        await ticker.stop()


@pytest.mark.lifecycle
class TestTicker:
    """Tests for the asyncio ticker."""

    async def test_calls_until_stopped(self):
        """Test the callback runs periodically and stops on request."""
        calls = []
        ticker = Ticker(0.01, lambda: calls.append(1))
        ticker.start()
        await asyncio.sleep(0.1)
        await ticker.stop()
        count = len(calls)

        assert count >= 1
        assert ticker.running is False
        await asyncio.sleep(0.05)
        assert len(calls) == count

    @pytest.mark.errors
    async def test_failing_callback_keeps_ticking(self, caplog):
        """Test a raising callback is logged and the loop carries on until stopped."""
        calls = []

        def failing() -> None:
            calls.append(1)
            raise OSError("disk full")

        ticker = Ticker(0.01, failing)
        ticker.start()
        await asyncio.sleep(0.1)

        assert ticker.running is True
        await ticker.stop()

        assert len(calls) >= 2
        assert ticker.running is False
        assert "Ticker callback failed" in caplog.text

    async def test_stop_without_start(self):
        """Test stopping an idle ticker is harmless."""
        await Ticker(1.0, lambda: None).stop()

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, interval: float):
        """Test the interval must be positive."""
        with pytest.raises(ValueError):
            Ticker(interval, lambda: None)


# =============================================================================
# Pomodoro Integration
# =============================================================================


@pytest.mark.timer
@pytest.mark.integration
class TestFocusSessions:
    """Tests for timer sessions flowing into history and tasks."""

    async def test_full_session_credits_task(self, client: ZenFlowClient):
        """Test 25 minutes of ticking records history and focus time."""
        task = client.add_task("Deep work")
        client.set_focus(task.id)
        client.toggle_timer()

        run(client, 1500)

        assert client.timer_state.mode is TimerMode.SHORT_BREAK
        assert client.timer_state.sessions_completed == 1
        assert [(h.date, h.minutes) for h in client.history] == [(TODAY.isoformat(), 25)]
        assert client.get_task(task.id).focus_time == 1500

    async def test_subtask_focus_credits_parent(self, client: ZenFlowClient):
        """Test focusing a subtask credits the parent task."""
        task = client.add_task("Deep work")
        st = client.add_subtask(task.id, "Draft")
        client.set_focus(task.id, st.id)
        client.toggle_timer()

        run(client, 1500)

        assert client.get_task(task.id).focus_time == 1500

    async def test_break_sessions_not_recorded(self, client: ZenFlowClient):
        """Test break time never reaches history."""
        client.switch_timer_mode(TimerMode.SHORT_BREAK)
        client.toggle_timer()

        run(client, 300)

        assert client.history == []
        assert client.timer_state.mode is TimerMode.WORK

    async def test_paused_time_not_counted(self, client: ZenFlowClient):
        """Test pausing mid-session preserves the remaining time."""
        client.toggle_timer()
        run(client, 600)
        client.toggle_timer()
        run(client, 600)

        assert client.timer_state.seconds_left == 900
        assert client.history == []

    async def test_set_duration_while_idle(self, client: ZenFlowClient, memory_storage: MemoryStorage):
        """Test a new work duration applies immediately and persists."""
        settings = client.set_timer_duration(TimerMode.WORK, "45min")

        assert settings.work == 45
        assert client.timer_state.seconds_left == 45 * 60
        assert json.loads(memory_storage.data[StorageKey.TIMER_SETTINGS.value])["专注时间"] == 45

    async def test_set_duration_while_running(self, client: ZenFlowClient):
        """Test a running countdown keeps its remaining time."""
        client.toggle_timer()
        run(client, 5)
        client.set_timer_duration("work", 10)

        assert client.timer_state.seconds_left == 1495
        client.reset_timer()
        assert client.timer_state.seconds_left == 600

    async def test_recorded_minutes_use_configured_work(self, client: ZenFlowClient):
        """Test a completed session records the configured duration."""
        client.set_timer_duration(TimerMode.WORK, 1)
        client.toggle_timer()
        run(client, 60)

        assert client.history[0].minutes == 1

    async def test_clamped_duration(self, client: ZenFlowClient):
        """Test durations outside 1-120 are clamped."""
        assert client.set_timer_duration(TimerMode.LONG_BREAK, 500).long_break == 120
        assert client.set_timer_duration(TimerMode.SHORT_BREAK, "").short_break == 1


# =============================================================================
# AI Orchestration
# =============================================================================


@pytest.mark.ai
class TestDailyReview:
    """Tests for the end-of-day review flow."""

    async def test_no_tasks(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test an empty list short-circuits without calling the provider."""
        assert await ai_client.end_day_review() == NO_TASKS_MESSAGE
        mock_ai.assert_not_called("get_end_day_review")

    async def test_not_configured(self, client: ZenFlowClient, mock_ai: MockAIService):
        """Test a missing key raises a configuration error."""
        client.add_task("A")

        with pytest.raises(ZenFlowConfigurationError) as exc_info:
            await client.end_day_review()

        assert str(exc_info.value) == AI_NOT_CONFIGURED_MESSAGE
        mock_ai.assert_not_called("get_end_day_review")

    async def test_review_and_fingerprint(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test a review is produced and its fingerprint remembered."""
        ai_client.add_task("A")

        assert await ai_client.end_day_review() == "Great day."
        assert ai_client.last_review == "Great day."
        assert ai_client.store.last_analyzed == ai_client.store.fingerprint()
        mock_ai.assert_called("get_end_day_review", times=1)

    async def test_unchanged_tasks_skip_provider(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test asking again without changes does not call the provider."""
        ai_client.add_task("A")
        await ai_client.end_day_review()

        assert await ai_client.end_day_review() == UNCHANGED_MESSAGE
        mock_ai.assert_called("get_end_day_review", times=1)

    async def test_changed_tasks_reanalyzed(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test completing a task makes the next review call the provider."""
        task = ai_client.add_task("A")
        await ai_client.end_day_review()
        ai_client.toggle_task(task.id)
        mock_ai.review_reply = "Even better."

        assert await ai_client.end_day_review() == "Even better."
        mock_ai.assert_called("get_end_day_review", times=2)

    async def test_stored_fingerprint_without_review_calls_provider(
        self,
        memory_storage: MemoryStorage,
        clock: FakeClock,
        mock_ai: MockAIService,
    ):
        """Test a fingerprint from an earlier run alone does not skip the review."""
        async with ZenFlowClient(
            memory_storage,
            tick_interval=None,
            today=lambda: TODAY,
            clock_ms=clock.ms,
            ai_factory=lambda s: mock_ai if s.active_key else None,
        ) as first:
            first.configure_ai(provider="glm", api_key="k")
            first.add_task("A")
            await first.end_day_review()

        async with ZenFlowClient(
            memory_storage,
            tick_interval=None,
            today=lambda: TODAY,
            clock_ms=clock.ms,
            ai_factory=lambda s: mock_ai if s.active_key else None,
        ) as second:
            assert await second.end_day_review() == "Great day."

        mock_ai.assert_called("get_end_day_review", times=2)


@pytest.mark.ai
class TestPrioritiesAndAnalysis:
    """Tests for priority suggestions and Schulte analysis."""

    async def test_priority_suggestions(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test suggestions come from the provider over current tasks."""
        ai_client.add_task("A")
        ai_client.add_task("B")
        mock_ai.priority_reply = ["B", "A"]

        assert await ai_client.priority_suggestions() == ["B", "A"]
        [(args, _)] = mock_ai.get_calls("get_task_priority_suggestion")
        assert [t.text for t in args[0]] == ["A", "B"]

    async def test_priority_not_configured(self, client: ZenFlowClient):
        """Test suggestions need a key."""
        client.add_task("A")

        with pytest.raises(ZenFlowConfigurationError):
            await client.priority_suggestions()

    async def test_schulte_analysis_without_history(self, client: ZenFlowClient, mock_ai: MockAIService):
        """Test no results yields the fixed reply even without a key."""
        assert await client.schulte_analysis() == SCHULTE_NO_RESULTS_REPLY
        mock_ai.assert_not_called("get_schulte_focus_analysis")

    async def test_schulte_analysis_not_configured(self, client: ZenFlowClient):
        """Test analysing real results needs a key."""
        client.store.add_schulte_result(SchulteResultFactory.create())

        with pytest.raises(ZenFlowConfigurationError) as exc_info:
            await client.schulte_analysis()

        assert str(exc_info.value) == AI_NOT_CONFIGURED_SHORT

    async def test_schulte_analysis_uses_last_five(self, ai_client: ZenFlowClient, mock_ai: MockAIService):
        """Test only the five most recent results are analysed."""
        for result in SchulteResultFactory.create_series([40, 38, 35, 33, 30, 29, 27]):
            ai_client.store.add_schulte_result(result)

        assert await ai_client.schulte_analysis() == "Steady focus."
        [(args, _)] = mock_ai.get_calls("get_schulte_focus_analysis")
        assert [r.time_taken for r in args[0]] == [35, 33, 30, 29, 27]

    async def test_default_service_is_chat_completion(self, memory_storage: MemoryStorage):
        """Test without a factory the client builds the provider service itself."""
        async with ZenFlowClient(memory_storage, tick_interval=None, today=lambda: TODAY) as client:
            assert client.ai_service() is None

            client.configure_ai(provider="deepseek", api_key="sk-test")
            service = client.ai_service()

            assert isinstance(service, ChatCompletionService)
            assert service.profile is DEEPSEEK


# =============================================================================
# Settings
# =============================================================================


@pytest.mark.lifecycle
class TestFromSettings:
    """Tests for building the client from settings."""

    async def test_from_settings(self, tmp_path: Path):
        """Test the data file and environment keys are honoured."""
        settings = Settings(
            data_file=tmp_path / "zen" / "state.json",
            tick_interval=5.0,
            deepseek_api_key="env-key",
        )
        client = ZenFlowClient.from_settings(settings, today=lambda: TODAY)
        await client.connect()
        try:
            client.configure_ai(provider="deepseek")
            client.add_task("From settings")
            assert client.ai_settings.deepseek_key == "env-key"
        finally:
            await client.disconnect()

        raw = json.loads((tmp_path / "zen" / "state.json").read_text(encoding="utf-8"))
        assert json.loads(raw[StorageKey.TASKS.value])[0]["text"] == "From settings"

    def test_settings_validate_log_level(self):
        """Test log levels are normalised and checked."""
        assert Settings(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            Settings(log_level="chatty")

    def test_seed_keys_skip_unset(self):
        """Test only provided keys are seeded."""
        settings = Settings(gemini_api_key="g", glm_api_key=None)

        assert {p.value: k for p, k in settings.seed_keys().items()} == {"gemini": "g"}
