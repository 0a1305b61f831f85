"""
Provider profiles.

Each supported provider is described by data, not by a subclass: its
chat-completion endpoint, model identifier and the review prompt it is
given. All three speak the OpenAI-style chat-completion wire format with
bearer authentication.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Sequence

from zenflow_mcp.ai import prompts
from zenflow_mcp.constants import AIProvider
from zenflow_mcp.models import Task


@dataclass(frozen=True)
class ProviderProfile:
    provider: AIProvider
    label: str
    endpoint: str
    model: str
    review_prompt: Callable[[Sequence[Task]], str]


GEMINI = ProviderProfile(
    provider=AIProvider.GEMINI,
    label="Gemini",
    endpoint="https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
    model="gemini-3-flash-preview",
    review_prompt=partial(prompts.review_prompt_en, language_note="Respond in Chinese as requested by context."),
)

DEEPSEEK = ProviderProfile(
    provider=AIProvider.DEEPSEEK,
    label="DeepSeek",
    endpoint="https://api.deepseek.com/v1/chat/completions",
    model="deepseek-chat",
    review_prompt=prompts.review_prompt_zh,
)

GLM = ProviderProfile(
    provider=AIProvider.GLM,
    label="ChatGLM",
    endpoint="https://open.bigmodel.cn/api/paas/v4/chat/completions",
    model="glm-4",
    review_prompt=partial(prompts.review_prompt_en, language_note="Respond in Chinese (Simplified)."),
)

PROFILES: dict[AIProvider, ProviderProfile] = {
    AIProvider.GEMINI: GEMINI,
    AIProvider.DEEPSEEK: DEEPSEEK,
    AIProvider.GLM: GLM,
}
