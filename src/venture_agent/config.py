"""Configuration models for the agent pipeline."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalConfig(BaseModel):
    """Configures the in-memory knowledge index and its search defaults."""

    embedding_dimension: int = Field(default=256, ge=8)
    default_top_k: int = Field(default=5, ge=1)
    default_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    contextual_threshold: float = Field(default=0.15, ge=0.0, le=1.0)
    prompt_top_k: int = Field(default=3, ge=1)
    prompt_threshold: float = Field(default=0.15, ge=0.0, le=1.0)


class OrchestratorConfig(BaseModel):
    """Configures provider selection, deadlines and health caching."""

    provider_timeout_seconds: float = Field(default=15.0, gt=0.0)
    probe_timeout_seconds: float = Field(default=5.0, gt=0.0)
    health_cache_seconds: float = Field(default=300.0, ge=0.0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)


class SessionConfig(BaseModel):
    """Configures conversation context bookkeeping."""

    max_topics: int = Field(default=10, ge=1)
    recent_message_window: int = Field(default=10, ge=1)
    summary_every: int = Field(default=5, ge=1)
    summary_window: int = Field(default=10, ge=1)
    summary_excerpt_chars: int = Field(default=100, ge=10)
    history_in_prompt: int = Field(default=6, ge=0)
    inactive_days: int = Field(default=7, ge=1)


class ShapingConfig(BaseModel):
    """Configures confidence penalties and response shaping."""

    fallback_confidence_delta: float = Field(default=0.2, ge=0.0, le=1.0)
    fallback_confidence_floor: float = Field(default=0.5, ge=0.3, le=1.0)
    max_message_chars: int = Field(default=2000, ge=1)
    continuation_prompt: str = "Would you like more details on any specific aspect?"


class ToolConfig(BaseModel):
    """Configures inline tool directive execution."""

    tool_timeout_seconds: float = Field(default=10.0, gt=0.0)
    result_preview_chars: int = Field(default=320, ge=20)


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Process settings. Credentials and endpoints come from the environment."""

    # Cloud provider credentials
    openai_api_key: str = Field(default="")
    groq_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    deepseek_api_key: str = Field(default="")
    cohere_api_key: str = Field(default="")
    huggingface_api_key: str = Field(default="")

    # Same-origin proxy for locally hosted backends (ollama, vllm, localai)
    agent_proxy_url: str = Field(default="http://localhost:8888/.netlify/functions/agent-proxy")

    # Generation
    default_model: str = Field(default="qwen2.5:latest")
    default_agent_id: str = Field(default="general-conversation")
    provider_timeout_seconds: float = Field(default=15.0, gt=0.0)
    health_cache_seconds: float = Field(default=300.0, ge=0.0)

    # Knowledge
    seed_knowledge: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def api_keys(self) -> dict[str, str]:
        """Provider id -> configured credential (possibly empty)."""
        return {
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
            "anthropic": self.anthropic_api_key,
            "deepseek": self.deepseek_api_key,
            "cohere": self.cohere_api_key,
            "huggingface": self.huggingface_api_key,
        }

    def orchestrator_config(self) -> OrchestratorConfig:
        return OrchestratorConfig(
            provider_timeout_seconds=self.provider_timeout_seconds,
            health_cache_seconds=self.health_cache_seconds,
        )
