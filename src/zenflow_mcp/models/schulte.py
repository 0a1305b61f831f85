"""Schulte grid result model."""

from __future__ import annotations

from pydantic import Field

from zenflow_mcp.constants import SCHULTE_GRID_SIZE
from zenflow_mcp.models.base import ZenFlowModel, now_ms
from zenflow_mcp.models.task import new_id


class SchulteResult(ZenFlowModel):
    """One finished 5x5 run: when it ended and how long it took (seconds)."""

    id: str = Field(default_factory=new_id)
    timestamp: int = Field(default_factory=now_ms)
    time_taken: float
    grid_size: int = SCHULTE_GRID_SIZE
