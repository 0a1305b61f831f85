"""AI service selection."""

from __future__ import annotations

import logging

import httpx

from zenflow_mcp.ai.providers import PROFILES
from zenflow_mcp.ai.service import AIService, ChatCompletionService
from zenflow_mcp.models import AISettings

logger = logging.getLogger(__name__)


def get_ai_service(
    settings: AISettings,
    *,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> AIService | None:
    """
    Build the service for the selected provider.

    Returns:
        A ready service, or None when the selected provider has no key
    """
    key = settings.active_key
    if not key:
        logger.debug("No API key configured for %s", settings.provider.value)
        return None
    return ChatCompletionService(
        PROFILES[settings.provider],
        key,
        http_client=http_client,
        timeout=timeout,
    )
