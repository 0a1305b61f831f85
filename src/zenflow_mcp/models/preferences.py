"""
User preference models: AI provider configuration and display settings.
"""

from __future__ import annotations

from zenflow_mcp.constants import AIProvider, AppMode, AppTheme
from zenflow_mcp.models.base import ZenFlowModel


class AISettings(ZenFlowModel):
    """Selected provider plus one API key per provider."""

    provider: AIProvider = AIProvider.GEMINI
    gemini_key: str = ""
    deepseek_key: str = ""
    glm_key: str = ""

    def key_for(self, provider: AIProvider) -> str:
        return getattr(self, f"{provider.value}_key")

    @property
    def active_key(self) -> str:
        """Key of the currently selected provider (may be empty)."""
        return self.key_for(self.provider)

    def with_key(self, provider: AIProvider, key: str) -> AISettings:
        return self.model_copy(update={f"{provider.value}_key": key})

    def masked(self) -> dict[str, str]:
        """Provider -> 'set'/'unset', for display without leaking keys."""
        return {p.value: "set" if self.key_for(p) else "unset" for p in AIProvider}


class Preferences(ZenFlowModel):
    """Visual theme and light/dark mode."""

    theme: AppTheme = AppTheme.MINIMALIST
    mode: AppMode = AppMode.LIGHT
