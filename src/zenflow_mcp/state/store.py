"""
ZenFlow State Store.

This module provides the StateStore class, the single owner of all
application state. It loads every concern from the storage port once at
start-up, applies the daily auto-clear, and writes the full snapshot of
a concern back to storage on every mutation.

Collections are replaced wholesale on mutation; models are immutable.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import date
from types import TracebackType
from typing import Any, Callable, Iterable, TypeVar

from pydantic import TypeAdapter, ValidationError

from zenflow_mcp.constants import AIProvider, AppMode, AppTheme, Priority, StorageKey
from zenflow_mcp.exceptions import (
    ZenFlowConfigurationError,
    ZenFlowNotFoundError,
    ZenFlowStorageError,
    ZenFlowValidationError,
)
from zenflow_mcp.models import (
    AISettings,
    FocusTarget,
    Preferences,
    SchulteResult,
    SessionHistoryEntry,
    Subtask,
    SubtaskFocusTarget,
    Task,
    TaskFocusTarget,
    TimerSettings,
    now_ms,
)
from zenflow_mcp.storage import StoragePort

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="StateStore")

_TASKS = TypeAdapter(list[Task])
_HISTORY = TypeAdapter(list[SessionHistoryEntry])
_SCHULTE = TypeAdapter(list[SchulteResult])


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class StateStore:
    """
    In-memory application state backed by a storage port.

    Usage:
        with StateStore(JsonFileStorage("~/.zenflow/state.json")) as store:
            task = store.add_task("Write report", Priority.HIGH)
            store.toggle_task(task.id)
    """

    def __init__(
        self,
        storage: StoragePort,
        *,
        today: Callable[[], date] = date.today,
        clock: Callable[[], int] = now_ms,
        seed_keys: dict[AIProvider, str] | None = None,
    ) -> None:
        self._storage = storage
        self._today = today
        self._clock = clock
        self._seed_keys = {p: k for p, k in (seed_keys or {}).items() if k}

        self._tasks: list[Task] = []
        self._history: list[SessionHistoryEntry] = []
        self._schulte_history: list[SchulteResult] = []
        self._timer_settings = TimerSettings()
        self._preferences = Preferences()
        self._ai_settings = AISettings()
        self._last_analyzed = ""
        self._focus_target: FocusTarget | None = None

        self._loaded = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(self) -> None:
        """
        Load every concern from storage.

        Completed tasks are purged when the stored last-visit date is set
        and differs from today; the marker is then set to today.
        """
        if self._loaded:
            return

        tasks = self._read_model(StorageKey.TASKS, _TASKS) or []
        today = self._today_key()
        last_visit = self._read_json(StorageKey.LAST_VISIT)
        if last_visit and last_visit != today:
            kept = [t for t in tasks if not t.completed]
            if len(kept) != len(tasks):
                logger.info("New day (last visit %s): cleared %d completed tasks", last_visit, len(tasks) - len(kept))
            tasks = kept
            self._write(StorageKey.TASKS, [t.to_storage() for t in tasks])
        self._write(StorageKey.LAST_VISIT, today)
        self._tasks = tasks

        self._history = self._read_model(StorageKey.HISTORY, _HISTORY) or []
        self._schulte_history = self._read_model(StorageKey.SCHULTE_HISTORY, _SCHULTE) or []
        self._timer_settings = self._read_model(StorageKey.TIMER_SETTINGS, TimerSettings) or TimerSettings()
        self._ai_settings = self._read_model(StorageKey.AI_SETTINGS, AISettings) or AISettings()
        self._preferences = Preferences(
            theme=self._read_model(StorageKey.THEME, AppTheme) or AppTheme.MINIMALIST,
            mode=self._read_model(StorageKey.MODE, AppMode) or AppMode.LIGHT,
        )
        self._last_analyzed = self._read_json(StorageKey.LAST_ANALYZED) or ""

        seeded = self._ai_settings
        for provider, key in self._seed_keys.items():
            if not seeded.key_for(provider):
                seeded = seeded.with_key(provider, key)
        if seeded != self._ai_settings:
            self._ai_settings = seeded
            self._write(StorageKey.AI_SETTINGS, seeded.to_storage())
            logger.info("Seeded AI keys from environment")

        self._loaded = True
        logger.info(
            "State loaded: %d tasks, %d history days, %d Schulte results",
            len(self._tasks),
            len(self._history),
            len(self._schulte_history),
        )

    def close(self) -> None:
        """Flush every concern and close the storage port."""
        if not self._loaded:
            return
        self._save_tasks()
        self._save_history()
        self._write(StorageKey.SCHULTE_HISTORY, [r.to_storage() for r in self._schulte_history])
        self._write(StorageKey.TIMER_SETTINGS, self._timer_settings.to_storage())
        self._write(StorageKey.THEME, self._preferences.theme.value)
        self._write(StorageKey.MODE, self._preferences.mode.value)
        self._write(StorageKey.AI_SETTINGS, self._ai_settings.to_storage())
        self._write(StorageKey.LAST_ANALYZED, self._last_analyzed)
        self._storage.close()
        self._loaded = False
        logger.info("State flushed and storage closed")

    def __enter__(self: T) -> T:
        self.load()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise ZenFlowConfigurationError("State not loaded. Call 'store.load()' or use the context manager.")

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # =========================================================================
    # Storage helpers
    # =========================================================================

    def _today_key(self) -> str:
        return self._today().isoformat()

    def _read_json(self, key: StorageKey) -> Any:
        raw = self._storage.read(key.value)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ZenFlowStorageError(f"Stored value for {key.value} is not valid JSON", key=key.value) from e

    def _read_model(self, key: StorageKey, schema: Any) -> Any:
        data = self._read_json(key)
        if data is None:
            return None
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_python(data)
            if isinstance(schema, type) and hasattr(schema, "model_validate"):
                return schema.model_validate(data)
            return schema(data)
        except (ValidationError, ValueError) as e:
            raise ZenFlowStorageError(f"Stored value for {key.value} is malformed: {e}", key=key.value) from e

    def _write(self, key: StorageKey, payload: Any) -> None:
        self._storage.write(key.value, _dumps(payload))

    def _save_tasks(self) -> None:
        self._write(StorageKey.TASKS, [t.to_storage() for t in self._tasks])

    def _save_history(self) -> None:
        self._write(StorageKey.HISTORY, [h.to_storage() for h in self._history])

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def history(self) -> list[SessionHistoryEntry]:
        return list(self._history)

    @property
    def schulte_history(self) -> list[SchulteResult]:
        return list(self._schulte_history)

    @property
    def timer_settings(self) -> TimerSettings:
        return self._timer_settings

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def ai_settings(self) -> AISettings:
        return self._ai_settings

    @property
    def focus_target(self) -> FocusTarget | None:
        return self._focus_target

    @property
    def last_analyzed(self) -> str:
        return self._last_analyzed

    def get_task(self, task_id: str) -> Task:
        """
        Get a task by ID.

        Raises:
            ZenFlowNotFoundError: If no task has this ID
        """
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise ZenFlowNotFoundError(f"Task not found: {task_id}", resource_id=task_id)

    # =========================================================================
    # Task Operations
    # =========================================================================

    def _replace_task(self, updated: Task) -> None:
        self._tasks = [updated if t.id == updated.id else t for t in self._tasks]
        self._save_tasks()

    def add_task(
        self,
        text: str,
        priority: Priority | str = Priority.MEDIUM,
        tags: Iterable[str] = (),
    ) -> Task:
        """
        Append a new, incomplete task.

        Args:
            text: Task text (surrounding whitespace is stripped)
            priority: high / medium / low
            tags: Free-text tags

        Returns:
            The created task
        """
        self._ensure_loaded()
        text = text.strip()
        if not text:
            raise ZenFlowValidationError("Task text cannot be empty")

        task = Task(
            text=text,
            priority=Priority(priority),
            tags=[t.strip() for t in tags if t.strip()],
            created_at=self._clock(),
        )
        self._tasks = [*self._tasks, task]
        self._save_tasks()
        logger.debug("Added task %s", task.id)
        return task

    def toggle_task(self, task_id: str) -> Task:
        """Flip a task's completion flag, setting or clearing completed_at."""
        self._ensure_loaded()
        updated = self.get_task(task_id).toggled(at=self._clock())
        self._replace_task(updated)
        return updated

    def add_subtask(self, task_id: str, text: str) -> Subtask:
        """Append a subtask to a task."""
        self._ensure_loaded()
        text = text.strip()
        if not text:
            raise ZenFlowValidationError("Subtask text cannot be empty")

        task = self.get_task(task_id)
        subtask = Subtask(text=text)
        self._replace_task(task.with_subtasks([*task.subtasks, subtask]))
        return subtask

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Subtask:
        """Flip a subtask's completion flag."""
        self._ensure_loaded()
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id)
        if subtask is None:
            raise ZenFlowNotFoundError(f"Subtask not found: {subtask_id}", resource_id=subtask_id)

        toggled = subtask.toggled()
        self._replace_task(task.with_subtasks([toggled if st.id == subtask_id else st for st in task.subtasks]))
        return toggled

    def delete_task(self, task_id: str) -> Task:
        """
        Remove a task and its subtasks.

        Clears the focus target when it points at the task or one of its
        subtasks.
        """
        self._ensure_loaded()
        task = self.get_task(task_id)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._save_tasks()

        target = self._focus_target
        if target is not None and (target.id == task_id or target.task_id == task_id):
            self._focus_target = None
            logger.debug("Focus target cleared with task %s", task_id)
        return task

    def clear_completed(self) -> int:
        """Remove all completed tasks. Returns how many were removed."""
        self._ensure_loaded()
        kept = [t for t in self._tasks if not t.completed]
        removed = len(self._tasks) - len(kept)
        self._tasks = kept
        self._save_tasks()
        return removed

    # =========================================================================
    # Focus Target
    # =========================================================================

    def set_focus_task(self, task_id: str) -> TaskFocusTarget:
        self._ensure_loaded()
        task = self.get_task(task_id)
        self._focus_target = TaskFocusTarget(id=task.id, text=task.text)
        return self._focus_target

    def set_focus_subtask(self, task_id: str, subtask_id: str) -> SubtaskFocusTarget:
        self._ensure_loaded()
        task = self.get_task(task_id)
        subtask = task.find_subtask(subtask_id)
        if subtask is None:
            raise ZenFlowNotFoundError(f"Subtask not found: {subtask_id}", resource_id=subtask_id)
        self._focus_target = SubtaskFocusTarget(id=subtask.id, parent_id=task.id, text=subtask.text)
        return self._focus_target

    def clear_focus(self) -> None:
        self._focus_target = None

    # =========================================================================
    # Session History
    # =========================================================================

    def record_focus_session(self, minutes: float) -> SessionHistoryEntry | None:
        """
        Account for one completed focus session.

        Minutes are rounded up to a whole minute (at least 1); zero or
        negative reports are dropped. Today's history entry is created or
        extended, and the focus target's task (the parent for a subtask)
        accrues the time in seconds.

        Returns:
            Today's updated entry, or None if the report was dropped
        """
        self._ensure_loaded()
        if minutes <= 0:
            return None
        effective = max(1, math.ceil(minutes))

        today = self._today_key()
        entry = next((h for h in self._history if h.date == today), None)
        if entry is None:
            entry = SessionHistoryEntry(date=today, minutes=effective, tasks_completed=0)
            self._history = [*self._history, entry]
        else:
            entry = entry.plus_minutes(effective)
            self._history = [entry if h.date == today else h for h in self._history]
        self._save_history()

        target = self._focus_target
        if target is not None:
            task = next((t for t in self._tasks if t.id == target.task_id), None)
            if task is not None:
                self._replace_task(task.with_focus_seconds(effective * 60))
        logger.info("Recorded %d focus minutes for %s", effective, today)
        return entry

    # =========================================================================
    # Schulte
    # =========================================================================

    def add_schulte_result(self, result: SchulteResult) -> None:
        self._ensure_loaded()
        self._schulte_history = [*self._schulte_history, result]
        self._write(StorageKey.SCHULTE_HISTORY, [r.to_storage() for r in self._schulte_history])

    # =========================================================================
    # Settings
    # =========================================================================

    def update_timer_settings(self, settings: TimerSettings) -> TimerSettings:
        self._ensure_loaded()
        self._timer_settings = settings
        self._write(StorageKey.TIMER_SETTINGS, settings.to_storage())
        return settings

    def update_preferences(
        self,
        theme: AppTheme | str | None = None,
        mode: AppMode | str | None = None,
    ) -> Preferences:
        self._ensure_loaded()
        if theme is not None:
            self._preferences = self._preferences.model_copy(update={"theme": AppTheme(theme)})
            self._write(StorageKey.THEME, self._preferences.theme.value)
        if mode is not None:
            self._preferences = self._preferences.model_copy(update={"mode": AppMode(mode)})
            self._write(StorageKey.MODE, self._preferences.mode.value)
        return self._preferences

    def update_ai_settings(
        self,
        provider: AIProvider | str | None = None,
        api_key: str | None = None,
    ) -> AISettings:
        """
        Change the selected provider and/or its key.

        The key is stored in the slot of the provider selected after the
        provider change is applied.
        """
        self._ensure_loaded()
        settings = self._ai_settings
        if provider is not None:
            settings = settings.model_copy(update={"provider": AIProvider(provider)})
        if api_key is not None:
            settings = settings.with_key(settings.provider, api_key.strip())
        self._ai_settings = settings
        self._write(StorageKey.AI_SETTINGS, settings.to_storage())
        return settings

    # =========================================================================
    # Review fingerprint
    # =========================================================================

    def fingerprint(self) -> str:
        """Serialized id/text/completed snapshot of every task."""
        return _dumps([{"id": t.id, "text": t.text, "completed": t.completed} for t in self._tasks])

    def remember_analyzed(self, fingerprint: str) -> None:
        self._ensure_loaded()
        self._last_analyzed = fingerprint
        self._write(StorageKey.LAST_ANALYZED, fingerprint)
