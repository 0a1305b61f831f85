"""
Task, Subtask and FocusTarget models.

Tasks are immutable values; the state store replaces a task with an
updated copy instead of mutating it in place.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from zenflow_mcp.constants import Priority
from zenflow_mcp.models.base import ZenFlowModel, now_ms


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


class Subtask(ZenFlowModel):
    """A checklist item owned by a task."""

    id: str = Field(default_factory=new_id)
    text: str
    completed: bool = False

    def toggled(self) -> Subtask:
        return self.model_copy(update={"completed": not self.completed})


class Task(ZenFlowModel):
    """
    A to-do item.

    Attributes:
        id: Unique identifier
        text: Task text
        completed: Completion flag
        created_at: Creation time (epoch ms)
        completed_at: Completion time (epoch ms), set iff completed
        priority: high / medium / low
        tags: Free-text tags
        subtasks: Ordered subtasks
        focus_time: Accumulated focus time in seconds
    """

    id: str = Field(default_factory=new_id)
    text: str
    completed: bool = False
    created_at: int = Field(default_factory=now_ms)
    completed_at: Optional[int] = None
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    subtasks: list[Subtask] = Field(default_factory=list)
    focus_time: int = 0

    def toggled(self, at: int | None = None) -> Task:
        """Return a copy with the completion flag flipped."""
        if self.completed:
            return self.model_copy(update={"completed": False, "completed_at": None})
        return self.model_copy(
            update={"completed": True, "completed_at": at if at is not None else now_ms()}
        )

    def with_subtasks(self, subtasks: list[Subtask]) -> Task:
        return self.model_copy(update={"subtasks": subtasks})

    def with_focus_seconds(self, seconds: int) -> Task:
        return self.model_copy(update={"focus_time": self.focus_time + seconds})

    def find_subtask(self, subtask_id: str) -> Subtask | None:
        return next((st for st in self.subtasks if st.id == subtask_id), None)


class TaskFocusTarget(ZenFlowModel):
    """Timer target pointing at a task."""

    type: Literal["task"] = "task"
    id: str
    text: str

    @property
    def task_id(self) -> str:
        return self.id


class SubtaskFocusTarget(ZenFlowModel):
    """Timer target pointing at a subtask; focus time accrues to the parent."""

    type: Literal["subtask"] = "subtask"
    id: str
    parent_id: str
    text: str

    @property
    def task_id(self) -> str:
        return self.parent_id


FocusTarget = Annotated[
    Union[TaskFocusTarget, SubtaskFocusTarget],
    Field(discriminator="type"),
]
