"""
Pydantic Input Models for ZenFlow MCP Tools.

This module defines all input validation models used by MCP tools.
Each model includes proper field constraints, descriptions, and examples.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zenflow_mcp.constants import SCHULTE_CELL_COUNT, AIProvider, AppMode, AppTheme, Priority, TimerMode


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    MARKDOWN = "markdown"
    JSON = "json"


class TaskFilter(str, Enum):
    """Which tasks to list."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class BaseMCPInput(BaseModel):
    """Base input model with common configuration."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


# =============================================================================
# Task Input Models
# =============================================================================


class TaskCreateInput(BaseMCPInput):
    """Input for creating a new task."""

    text: str = Field(
        ...,
        description="Task text (e.g., 'Review quarterly report', 'Buy groceries')",
        min_length=1,
        max_length=500,
    )
    priority: Priority = Field(
        default=Priority.MEDIUM,
        description="Priority level: 'high', 'medium' or 'low'",
    )
    tags: Optional[List[str]] = Field(
        default=None,
        description="Free-text tags (e.g., ['work', 'urgent'])",
        max_length=20,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable, 'json' for machine-readable",
    )

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class TaskIdInput(BaseMCPInput):
    """Input for operations addressing a single task."""

    task_id: str = Field(
        ...,
        description="Task identifier",
        min_length=1,
        max_length=64,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


class TaskListInput(BaseMCPInput):
    """Input for listing tasks."""

    status: TaskFilter = Field(
        default=TaskFilter.ALL,
        description="Which tasks to include: 'all', 'active' or 'completed'",
    )
    priority: Optional[Priority] = Field(
        default=None,
        description="Only tasks with this priority",
    )
    tag: Optional[str] = Field(
        default=None,
        description="Only tasks carrying this tag (case-insensitive)",
        max_length=50,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


class SubtaskCreateInput(BaseMCPInput):
    """Input for adding a subtask."""

    task_id: str = Field(..., description="Parent task identifier", min_length=1, max_length=64)
    text: str = Field(..., description="Subtask text", min_length=1, max_length=500)


class SubtaskToggleInput(BaseMCPInput):
    """Input for toggling a subtask."""

    task_id: str = Field(..., description="Parent task identifier", min_length=1, max_length=64)
    subtask_id: str = Field(..., description="Subtask identifier", min_length=1, max_length=64)


class FocusSetInput(BaseMCPInput):
    """Input for choosing what the timer is attributed to."""

    task_id: str = Field(..., description="Task to focus on", min_length=1, max_length=64)
    subtask_id: Optional[str] = Field(
        default=None,
        description="Subtask of the task to focus on; time still accrues to the parent task",
        max_length=64,
    )


# =============================================================================
# Timer Input Models
# =============================================================================


class TimerModeInput(BaseMCPInput):
    """Input for switching the timer mode."""

    mode: TimerMode = Field(
        ...,
        description="Timer mode: 'work', 'short_break' or 'long_break'",
    )


class TimerSettingsInput(BaseMCPInput):
    """Input for changing timer durations (minutes, clamped to 1-120)."""

    work: Optional[Union[int, float, str]] = Field(default=None, description="Focus duration in minutes")
    short_break: Optional[Union[int, float, str]] = Field(default=None, description="Short break in minutes")
    long_break: Optional[Union[int, float, str]] = Field(default=None, description="Long break in minutes")

    def changes(self) -> dict[TimerMode, Union[int, float, str]]:
        values = {
            TimerMode.WORK: self.work,
            TimerMode.SHORT_BREAK: self.short_break,
            TimerMode.LONG_BREAK: self.long_break,
        }
        return {mode: v for mode, v in values.items() if v is not None}


# =============================================================================
# Schulte Input Models
# =============================================================================


class SchulteClickInput(BaseMCPInput):
    """Input for clicking a Schulte grid cell."""

    number: int = Field(
        ...,
        description=f"Number on the clicked cell (1-{SCHULTE_CELL_COUNT})",
        ge=1,
        le=SCHULTE_CELL_COUNT,
    )


class SchulteHistoryInput(BaseMCPInput):
    """Input for listing Schulte results."""

    limit: int = Field(default=10, description="Most recent results to return", ge=1, le=100)
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


# =============================================================================
# View Input Models
# =============================================================================


class CalendarInput(BaseMCPInput):
    """Input for the month calendar."""

    year: Optional[int] = Field(default=None, description="Year (defaults to current)", ge=1970, le=9999)
    month: Optional[int] = Field(default=None, description="Month 1-12 (defaults to current)", ge=1, le=12)
    day: Optional[int] = Field(
        default=None,
        description="Also list the tasks created or completed on this day",
        ge=1,
        le=31,
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format",
    )


# =============================================================================
# Settings Input Models
# =============================================================================


class AIConfigInput(BaseMCPInput):
    """Input for configuring the AI provider."""

    provider: Optional[AIProvider] = Field(
        default=None,
        description="Provider to use: 'gemini', 'deepseek' or 'glm'",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the selected provider (empty string clears it)",
        max_length=500,
    )


class PreferencesInput(BaseMCPInput):
    """Input for display preferences."""

    theme: Optional[AppTheme] = Field(
        default=None,
        description="Theme: 'minimalist', 'youthful', 'business' or 'nature'",
    )
    mode: Optional[AppMode] = Field(default=None, description="'light' or 'dark'")
