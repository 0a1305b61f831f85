"""Shared Pydantic base for persisted models."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ZenFlowModel(BaseModel):
    """
    Base model for everything written to storage.

    Fields are snake_case in Python and camelCase on disk, matching the
    data written by the browser version of the app. Models whose stored
    keys are not camelCase (TimerSettings) declare explicit aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_storage(self) -> dict[str, Any]:
        """Serialize for storage (camelCase, unset optionals omitted)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
