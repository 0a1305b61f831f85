"""
ZenFlow MCP Server - focus timer, task list and attention training over MCP.

This package provides a Model Context Protocol (MCP) server for a personal
productivity workflow: a Pomodoro timer that credits focus time to tasks,
a to-do list with subtasks, a Schulte grid exercise and an AI advisory.

Architecture:
    MCP Tools Layer
         │
         ▼
    ZenFlow Client (lifecycle & wiring)
         │
    ┌────┼──────────────┐
    ▼    ▼              ▼
  State  Engines        AI Advisory
  Store  (Pomodoro,     (Gemini, DeepSeek,
    │     Schulte)       GLM over HTTP)
    ▼
  Storage Port (JSON file / memory)
"""

__version__ = "0.1.0"
__author__ = "ZenFlow MCP Contributors"

from zenflow_mcp.exceptions import (
    ZenFlowError,
    ZenFlowConfigurationError,
    ZenFlowValidationError,
    ZenFlowNotFoundError,
    ZenFlowStorageError,
    ZenFlowAIError,
)

__all__ = [
    "__version__",
    "ZenFlowError",
    "ZenFlowConfigurationError",
    "ZenFlowValidationError",
    "ZenFlowNotFoundError",
    "ZenFlowStorageError",
    "ZenFlowAIError",
]
