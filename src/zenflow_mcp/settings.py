"""
ZenFlow Settings.

Runtime configuration read from environment variables (prefix
``ZENFLOW_``) or a ``.env`` file.

Environment Variables:
    ZENFLOW_DATA_FILE           Path of the JSON state file
    ZENFLOW_LOG_LEVEL           Logging level (default INFO)
    ZENFLOW_AI_TIMEOUT          Provider request timeout in seconds
    ZENFLOW_TICK_INTERVAL       Pomodoro tick period in seconds
    ZENFLOW_GEMINI_API_KEY      Seeds the stored Gemini key if empty
    ZENFLOW_DEEPSEEK_API_KEY    Seeds the stored DeepSeek key if empty
    ZENFLOW_GLM_API_KEY         Seeds the stored GLM key if empty
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zenflow_mcp.constants import AIProvider


class Settings(BaseSettings):
    """Process-wide configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ZENFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_file: Path = Field(
        default=Path("~/.zenflow/state.json"),
        description="JSON file holding the persisted state",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    ai_timeout: float = Field(default=30.0, gt=0, description="AI request timeout (seconds)")
    tick_interval: float = Field(default=1.0, gt=0, description="Pomodoro tick period (seconds)")

    gemini_api_key: SecretStr | None = None
    deepseek_api_key: SecretStr | None = None
    glm_api_key: SecretStr | None = None

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @property
    def data_path(self) -> Path:
        return self.data_file.expanduser()

    def seed_keys(self) -> dict[AIProvider, str]:
        """Provider keys supplied through the environment."""
        keys = {
            AIProvider.GEMINI: self.gemini_api_key,
            AIProvider.DEEPSEEK: self.deepseek_api_key,
            AIProvider.GLM: self.glm_api_key,
        }
        return {p: k.get_secret_value() for p, k in keys.items() if k is not None}


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
