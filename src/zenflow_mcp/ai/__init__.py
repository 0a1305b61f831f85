"""
ZenFlow AI Advisory.

Stateless text generation over tasks and Schulte results, served by one
of three chat-completion providers (Gemini, DeepSeek, ChatGLM).
"""

from zenflow_mcp.ai.providers import ProviderProfile, PROFILES, GEMINI, DEEPSEEK, GLM
from zenflow_mcp.ai.service import AIService, ChatCompletionService
from zenflow_mcp.ai.factory import get_ai_service

__all__ = [
    "AIService",
    "ChatCompletionService",
    "ProviderProfile",
    "PROFILES",
    "GEMINI",
    "DEEPSEEK",
    "GLM",
    "get_ai_service",
]
