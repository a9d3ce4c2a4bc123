# chatgate (c) 2025 chatgate contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Centralized application settings for chatgate.

This module provides a typed configuration system using Pydantic BaseSettings.
It organizes settings into logical groups and loads values from the environment
and an optional .env file at the repository root. The settings object is built
once at import time and is treated as read-only afterwards.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL_ALIASES: dict[str, str] = {
    "glm": "zai-org/GLM-4.6",
    "deepseek": "deepseek-ai/DeepSeek-V3.2",
    "kimi": "moonshotai/Kimi-K2-Thinking",
    "qwen": "Qwen/Qwen3-VL-8B-Instruct",
    "llama": "meta-llama/Llama-3.3-70B-Instruct",
}


class UpstreamSettings(BaseSettings):
    """Upstream chat-completion API configuration.

    The API key is optional at load time: a missing key does not stop the
    process, every chat request reports it as a configuration error instead.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    api_key: str | None = Field(
        default=None,
        description="Bearer credential for the upstream chat-completion API.",
        validation_alias=AliasChoices("HF_TOKEN", "UPSTREAM_API_KEY"),
    )
    base_url: str = Field(
        default="https://router.huggingface.co/v1",
        description="Base URL of the upstream API; /chat/completions is appended.",
        validation_alias=AliasChoices("UPSTREAM_BASE_URL", "HF_BASE_URL"),
    )
    timeout_ms: int = Field(
        default=60000,
        description="Timeout for one upstream call in milliseconds.",
        validation_alias=AliasChoices("UPSTREAM_TIMEOUT_MS", "TIMEOUT_MS"),
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("timeout_ms")
    @classmethod
    def _validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("UPSTREAM_TIMEOUT_MS must be > 0")
        return value

    @property
    def chat_completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


class GatewaySettings(BaseSettings):
    """Model routing and request normalization settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    model_aliases: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_MODEL_ALIASES),
        description="Short alias to upstream model identifier (JSON object in env).",
        validation_alias=AliasChoices("MODEL_ALIASES", "GATEWAY_MODEL_ALIASES"),
    )
    default_model: str = Field(
        default="deepseek",
        description="Alias or upstream model id used when the caller names no model.",
        validation_alias=AliasChoices("DEFAULT_MODEL", "GATEWAY_DEFAULT_MODEL"),
    )
    max_tokens_default: int = Field(
        default=2048,
        description="max_tokens sent upstream when the caller supplies no valid value.",
        validation_alias=AliasChoices("MAX_TOKENS_DEFAULT", "GATEWAY_MAX_TOKENS_DEFAULT"),
    )
    temperature_default: float | None = Field(
        default=None,
        description="Temperature sent upstream when the caller supplies none; "
        "unset means the field is omitted and the upstream default applies.",
        validation_alias=AliasChoices("TEMPERATURE_DEFAULT", "GATEWAY_TEMPERATURE_DEFAULT"),
    )
    response_shape: Literal["completion", "message", "envelope"] = Field(
        default="completion",
        description="What successful chat responses contain: the full upstream completion, "
        "only the first choice's message, or that message wrapped as {'response': ...}.",
        validation_alias=AliasChoices("RESPONSE_SHAPE", "GATEWAY_RESPONSE_SHAPE"),
    )
    max_upload_mb: int = Field(
        default=10,
        description="Maximum accepted image upload size in megabytes.",
        validation_alias=AliasChoices("MAX_UPLOAD_MB", "GATEWAY_MAX_UPLOAD_MB"),
    )

    @field_validator("model_aliases")
    @classmethod
    def _validate_aliases(cls, value: dict[str, str]) -> dict[str, str]:
        for alias, model_id in value.items():
            if not alias or not model_id:
                raise ValueError(f"Model alias {alias!r} must map to a non-empty model id")
        return value

    @field_validator("temperature_default", mode="before")
    @classmethod
    def _blank_temperature_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("max_tokens_default", "max_upload_mb")
    @classmethod
    def _validate_positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be > 0")
        return value


class CorsSettings(BaseSettings):
    """Fixed CORS header set attached to every response."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    allow_origin: str = Field(
        default="*",
        validation_alias=AliasChoices("CORS_ALLOW_ORIGIN", "CORS_ORIGIN"),
    )
    allow_methods: str = Field(
        default="GET, POST, OPTIONS",
        validation_alias=AliasChoices("CORS_ALLOW_METHODS"),
    )
    allow_headers: str = Field(
        default="Content-Type, Authorization",
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS"),
    )
    preflight_status: int = Field(
        default=204,
        validation_alias=AliasChoices("CORS_PREFLIGHT_STATUS"),
    )

    @field_validator("preflight_status")
    @classmethod
    def _validate_preflight_status(cls, value: int) -> int:
        if value not in (200, 204):
            raise ValueError("CORS_PREFLIGHT_STATUS must be 200 or 204")
        return value


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    log_level: str = Field(
        default="info",
        description="Log level for application logs.",
        validation_alias=AliasChoices("LOG_LEVEL", "OBS_LOG_LEVEL"),
    )
    log_json: bool = Field(
        default=True,
        description="Render log events as JSON (console rendering otherwise).",
        validation_alias=AliasChoices("LOG_JSON", "OBS_LOG_JSON"),
    )
    enable_metrics: bool = Field(
        default=True,
        description="Expose Prometheus metrics at /metrics.",
        validation_alias=AliasChoices("ENABLE_METRICS", "OBS_ENABLE_METRICS"),
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level to lowercase string."""
        if isinstance(value, str):
            return value.lower()
        return str(value)


class ServerSettings(BaseSettings):
    """Server runtime parameters."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    host: str = Field(
        default="0.0.0.0",
        description="Server host to bind to (use 0.0.0.0 in containers).",
        validation_alias=AliasChoices("HOST", "SERVER_HOST"),
    )
    port: int = Field(
        default=8000,
        description="Server port to listen on (must be > 0).",
        validation_alias=AliasChoices("PORT", "SERVER_PORT"),
    )
    debug: bool = Field(
        default=False,
        description="Enable auto-reload and verbose logging.",
        validation_alias=AliasChoices("DEBUG", "SERVER_DEBUG"),
    )

    @field_validator("debug", mode="before")
    @classmethod
    def _parse_debug_flag(cls, value: Any) -> bool:
        """Parse debug flag from various string/boolean formats."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value) if value is not None else False

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("PORT must be > 0")
        return value


class Settings(BaseSettings):
    """Root settings object combining all configuration groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    upstream: UpstreamSettings = UpstreamSettings()
    gateway: GatewaySettings = GatewaySettings()
    cors: CorsSettings = CorsSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
    server: ServerSettings = ServerSettings()


# Singleton settings instance used across the application
settings = Settings()
