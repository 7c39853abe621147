"""Application configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _valkey_alias(env_name: str) -> AliasChoices:
    """Support both VALKEY_* and REDIS_* env var names for compatibility."""
    redis_name = env_name.replace("VALKEY_", "REDIS_")
    return AliasChoices(redis_name, env_name)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Infrastructure
    # ==========================================================================

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment: 'development', 'staging', or 'production'.",
    )

    valkey_url: str = Field(
        default="valkey://localhost:6379/0",
        validation_alias=_valkey_alias("VALKEY_URL"),
    )

    store_backend: Literal["memory", "valkey"] = Field(
        default="memory",
        alias="STORE_BACKEND",
        description="Key-value store backing the source caches.",
    )
    store_circuit_breaker_timeout_seconds: float = Field(
        default=2.0, alias="STORE_CIRCUIT_BREAKER_TIMEOUT_SECONDS", ge=0.0
    )

    # ==========================================================================
    # Sources
    # ==========================================================================

    sources: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=dict,
        alias="SOURCES",
        description="Comma-separated name=url pairs of remote JSON sources.",
    )
    source_cache_ttl_seconds: int | None = Field(
        default=300,
        alias="SOURCE_CACHE_TTL_SECONDS",
        ge=0,
        description="Lifetime of cached source values; empty or 0 never expires.",
    )
    http_timeout_seconds: float = Field(
        default=10.0, alias="HTTP_TIMEOUT_SECONDS", gt=0.0
    )

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="thindata", alias="OTEL_SERVICE_NAME")
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://jaeger:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("sources", mode="before")
    @classmethod
    def parse_sources(cls, value: Any) -> dict[str, str]:
        """Parse comma-separated name=url pairs, rejecting duplicates."""
        if value is None:
            return {}
        if isinstance(value, dict):
            return dict(value)
        if not isinstance(value, str):
            raise ValueError("Sources must be a mapping or 'name=url' pairs.")

        parsed: dict[str, str] = {}
        for item in value.split(","):
            item = item.strip()
            if not item:
                continue
            name, sep, url = item.partition("=")
            name, url = name.strip(), url.strip()
            if not sep or not name or not url:
                raise ValueError(f"Invalid source entry '{item}', expected name=url.")
            if name in parsed:
                raise ValueError(f"Duplicate source name '{name}'.")
            parsed[name] = url
        return parsed

    @field_validator("source_cache_ttl_seconds", mode="before")
    @classmethod
    def parse_cache_ttl(cls, value: Any) -> Any:
        """Treat an empty value as 'never expires'."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
