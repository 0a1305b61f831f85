"""
Pytest Configuration and Fixtures for ZenFlow Tests.

This module provides fixtures, data factories, and shared utilities for
testing the state store, engines, AI services and the client.

Architecture:
    - FakeClock: Controllable wall clock (seconds and epoch ms)
    - MockAIService: Recording stand-in for the AI advisory
    - Factories: Generate test data (tasks, Schulte results)
    - Fixtures: Provide loaded stores and connected clients
    - Markers: Custom pytest markers for test categorization
"""

from __future__ import annotations

import json
import random
from datetime import date, datetime, timedelta
from typing import Any, AsyncIterator, Sequence

import pytest

from zenflow_mcp.client import ZenFlowClient
from zenflow_mcp.constants import Priority, StorageKey
from zenflow_mcp.models import AISettings, SchulteResult, Subtask, Task
from zenflow_mcp.state import StateStore
from zenflow_mcp.storage import MemoryStorage


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "tasks: Task-related tests")
    config.addinivalue_line("markers", "timer: Pomodoro timer tests")
    config.addinivalue_line("markers", "history: Focus session history tests")
    config.addinivalue_line("markers", "schulte: Schulte grid tests")
    config.addinivalue_line("markers", "ai: AI advisory tests")
    config.addinivalue_line("markers", "views: Statistics and calendar tests")
    config.addinivalue_line("markers", "storage: Persistence tests")
    config.addinivalue_line("markers", "server: MCP tool tests")
    config.addinivalue_line("markers", "errors: Error handling tests")
    config.addinivalue_line("markers", "lifecycle: Client lifecycle tests")


# =============================================================================
# Time Utilities
# =============================================================================


TODAY = date(2024, 3, 15)
YESTERDAY = TODAY - timedelta(days=1)


def local_ms(day: date, hour: int = 9, minute: int = 0) -> int:
    """Epoch milliseconds of a local wall-clock time."""
    return int(datetime(day.year, day.month, day.day, hour, minute).timestamp() * 1000)


class FakeClock:
    """Manually advanced clock usable as both seconds and ms source."""

    def __init__(self, start: datetime | None = None) -> None:
        start = start or datetime(TODAY.year, TODAY.month, TODAY.day, 9, 0)
        self.now = start.timestamp()

    def __call__(self) -> float:
        return self.now

    def ms(self) -> int:
        return int(self.now * 1000)

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# ID Generators
# =============================================================================


class IDGenerator:
    """Sequential ID generator for test objects."""

    _counter: int = 0

    @classmethod
    def reset(cls) -> None:
        """Reset counter (call in fixtures)."""
        cls._counter = 0

    @classmethod
    def next_id(cls, prefix: str = "") -> str:
        """Generate next unique ID."""
        cls._counter += 1
        return f"{prefix}{cls._counter:08d}"


# =============================================================================
# Test Data Factories
# =============================================================================


class TaskFactory:
    """Factory for creating Task test objects."""

    @staticmethod
    def create(
        id: str | None = None,
        text: str = "Test Task",
        completed: bool = False,
        created_at: int | None = None,
        completed_at: int | None = None,
        priority: Priority = Priority.MEDIUM,
        tags: list[str] | None = None,
        subtasks: list[Subtask] | None = None,
        focus_time: int = 0,
    ) -> Task:
        """Create a task with sensible defaults."""
        return Task(
            id=id or IDGenerator.next_id("task-"),
            text=text,
            completed=completed,
            created_at=created_at if created_at is not None else local_ms(TODAY),
            completed_at=completed_at,
            priority=priority,
            tags=tags or [],
            subtasks=subtasks or [],
            focus_time=focus_time,
        )

    @staticmethod
    def create_completed(hours_to_complete: float = 2.0, **kwargs) -> Task:
        """Create a completed task finished `hours_to_complete` after creation."""
        created_at = kwargs.pop("created_at", local_ms(TODAY))
        return TaskFactory.create(
            completed=True,
            created_at=created_at,
            completed_at=created_at + int(hours_to_complete * 3600 * 1000),
            **kwargs,
        )

    @staticmethod
    def create_with_subtasks(count: int, completed_count: int = 0, **kwargs) -> Task:
        """Create a task with `count` subtasks, the first `completed_count` done."""
        subtasks = [
            Subtask(id=IDGenerator.next_id("sub-"), text=f"Step {i + 1}", completed=i < completed_count)
            for i in range(count)
        ]
        return TaskFactory.create(subtasks=subtasks, **kwargs)


class SchulteResultFactory:
    """Factory for creating SchulteResult test objects."""

    @staticmethod
    def create(time_taken: float = 25.0, timestamp: int | None = None) -> SchulteResult:
        return SchulteResult(
            id=IDGenerator.next_id("schulte-"),
            timestamp=timestamp if timestamp is not None else local_ms(TODAY, 10),
            time_taken=time_taken,
        )

    @staticmethod
    def create_series(times: Sequence[float]) -> list[SchulteResult]:
        """One result per time, a minute apart."""
        base = local_ms(TODAY, 10)
        return [SchulteResultFactory.create(t, timestamp=base + i * 60_000) for i, t in enumerate(times)]


def as_stored(*tasks: Task) -> list[dict[str, Any]]:
    """Tasks in their persisted camelCase shape."""
    return [t.to_storage() for t in tasks]


# =============================================================================
# Mock AI Service
# =============================================================================


class MockAIService:
    """
    Recording mock for the AI advisory.

    Replies are configurable per capability, and `should_fail` makes a
    capability raise, allowing tests to check which calls reach the
    provider and what the client does with the answers.
    """

    def __init__(self):
        """Initialize with canned replies."""
        self.review_reply: str = "Great day."
        self.priority_reply: list[str] | None = None
        self.schulte_reply: str = "Steady focus."

        # Track method calls for verification
        self.call_history: list[tuple[str, tuple, dict]] = []

        # Configurable behaviors
        self.should_fail: dict[str, Exception | None] = {}

    def _record_call(self, method: str, args: tuple, kwargs: dict) -> None:
        """Record method call for verification."""
        self.call_history.append((method, args, kwargs))

    def _check_failure(self, method: str) -> None:
        """Check if method should raise an exception."""
        if method in self.should_fail and self.should_fail[method]:
            raise self.should_fail[method]

    async def get_end_day_review(self, tasks: Sequence[Task]) -> str:
        self._record_call("get_end_day_review", (list(tasks),), {})
        self._check_failure("get_end_day_review")
        return self.review_reply

    async def get_task_priority_suggestion(self, tasks: Sequence[Task]) -> list[str]:
        self._record_call("get_task_priority_suggestion", (list(tasks),), {})
        self._check_failure("get_task_priority_suggestion")
        if self.priority_reply is not None:
            return self.priority_reply
        return [t.text for t in tasks if not t.completed][:3]

    async def get_schulte_focus_analysis(self, results: Sequence[SchulteResult]) -> str:
        self._record_call("get_schulte_focus_analysis", (list(results),), {})
        self._check_failure("get_schulte_focus_analysis")
        return self.schulte_reply

    def get_calls(self, method_name: str) -> list[tuple[tuple, dict]]:
        """Get all calls to a specific method."""
        return [(args, kwargs) for name, args, kwargs in self.call_history if name == method_name]

    def assert_called(self, method_name: str, times: int | None = None) -> None:
        """Assert a method was called (optionally a specific number of times)."""
        calls = self.get_calls(method_name)
        if times is not None:
            assert len(calls) == times, f"Expected {method_name} to be called {times} times, got {len(calls)}"
        else:
            assert len(calls) > 0, f"Expected {method_name} to be called at least once"

    def assert_not_called(self, method_name: str) -> None:
        """Assert a method was not called."""
        calls = self.get_calls(method_name)
        assert len(calls) == 0, f"Expected {method_name} not to be called, but was called {len(calls)} times"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def id_generator():
    """Reset and provide ID generator so factory IDs restart in every test."""
    IDGenerator.reset()
    return IDGenerator


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 09:00 local time on TODAY."""
    return FakeClock()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Create an empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def store(memory_storage: MemoryStorage, clock: FakeClock) -> StateStore:
    """Create a loaded StateStore whose 'today' is TODAY."""
    state = StateStore(memory_storage, today=lambda: TODAY, clock=clock.ms)
    state.load()
    return state


@pytest.fixture
def mock_ai() -> MockAIService:
    """Create a fresh mock AI service."""
    return MockAIService()


def _client(storage: MemoryStorage, clock: FakeClock, mock_ai: MockAIService) -> ZenFlowClient:
    def ai_factory(settings: AISettings) -> MockAIService | None:
        return mock_ai if settings.active_key else None

    return ZenFlowClient(
        storage,
        tick_interval=None,
        today=lambda: TODAY,
        clock_ms=clock.ms,
        wall_clock=clock,
        rng=random.Random(7),
        ai_factory=ai_factory,
    )


@pytest.fixture
async def client(
    memory_storage: MemoryStorage,
    clock: FakeClock,
    mock_ai: MockAIService,
) -> AsyncIterator[ZenFlowClient]:
    """
    Create a connected ZenFlowClient over memory storage.

    The background ticker is disabled; tests drive `client.tick()`
    themselves. No AI key is configured.
    """
    zf = _client(memory_storage, clock, mock_ai)
    await zf.connect()
    yield zf
    await zf.disconnect()


@pytest.fixture
async def ai_client(
    memory_storage: MemoryStorage,
    clock: FakeClock,
    mock_ai: MockAIService,
) -> AsyncIterator[ZenFlowClient]:
    """Create a connected client with a DeepSeek key configured."""
    zf = _client(memory_storage, clock, mock_ai)
    await zf.connect()
    zf.configure_ai(provider="deepseek", api_key="sk-test")
    yield zf
    await zf.disconnect()


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def task_factory() -> type[TaskFactory]:
    """Provide TaskFactory class."""
    return TaskFactory


@pytest.fixture
def schulte_factory() -> type[SchulteResultFactory]:
    """Provide SchulteResultFactory class."""
    return SchulteResultFactory


# =============================================================================
# Helpers
# =============================================================================


def storage_with(**values: Any) -> MemoryStorage:
    """MemoryStorage pre-filled with JSON-encoded values, keyed by StorageKey member name."""
    return MemoryStorage({StorageKey[name.upper()].value: json.dumps(v) for name, v in values.items()})
