"""
ZenFlow Exception Hierarchy.

All errors raised by the package derive from ZenFlowError so the MCP
layer can catch them in one place and turn them into user-facing
messages.

Hierarchy:
    ZenFlowError
    ├── ZenFlowConfigurationError   (missing API key, bad settings)
    ├── ZenFlowValidationError      (rejected input)
    ├── ZenFlowNotFoundError        (unknown task/subtask id)
    ├── ZenFlowStorageError         (unreadable persisted value)
    └── ZenFlowAIError              (provider call failed; never escapes ai/)
"""

from __future__ import annotations

from typing import Any


class ZenFlowError(Exception):
    """Base exception for all ZenFlow errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ZenFlowConfigurationError(ZenFlowError):
    """Raised when a required setting (e.g. an AI provider key) is missing."""


class ZenFlowValidationError(ZenFlowError):
    """Raised when input is rejected before any state is touched."""


class ZenFlowNotFoundError(ZenFlowError):
    """Raised when a task or subtask id does not exist."""

    def __init__(self, message: str, *, resource_id: str | None = None) -> None:
        super().__init__(message, details={"resource_id": resource_id})
        self.resource_id = resource_id


class ZenFlowStorageError(ZenFlowError):
    """Raised when a persisted value cannot be decoded into its model."""

    def __init__(self, message: str, *, key: str) -> None:
        super().__init__(message, details={"key": key})
        self.key = key


class ZenFlowAIError(ZenFlowError):
    """Raised inside the AI layer when a provider call or reply is unusable."""

    def __init__(self, message: str, *, provider: str, status_code: int | None = None) -> None:
        super().__init__(message, details={"provider": provider, "status_code": status_code})
        self.provider = provider
        self.status_code = status_code
