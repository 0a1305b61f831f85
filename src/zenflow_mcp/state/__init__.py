"""State ownership and persistence."""

from zenflow_mcp.state.store import StateStore

__all__ = ["StateStore"]
