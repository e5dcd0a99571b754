"""
Shared configuration management for the Clash Access proxy.
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(name: str, *aliases: str) -> AliasChoices:
    """Accept the field name (for keyword construction) and its env var names."""
    return AliasChoices(name, *aliases)


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=_env("env", "PROXY_ENV"))
    log_level: str = Field(default="info", validation_alias=_env("log_level", "PROXY_LOG_LEVEL"))

    # Server
    host: str = Field(default="0.0.0.0", validation_alias=_env("host", "HOST"))
    port: int = Field(default=3000, validation_alias=_env("port", "PORT"))


class ProxyConfig(BaseConfig):
    """Settings for the upstream forwarding and caching core."""

    service_name: str = "proxy"

    # Upstream
    upstream_base_url: str = Field(
        default="https://api.clashofclans.com/v1",
        validation_alias=_env("upstream_base_url", "COC_API_BASE"),
    )
    api_token: str = Field(..., min_length=1, validation_alias=_env("api_token", "COC_API_TOKEN"), repr=False)
    user_agent: str = Field(default="coc-dashboard-proxy/1.0", validation_alias=_env("user_agent", "USER_AGENT"))
    fetch_timeout_ms: int = Field(default=6000, gt=0, validation_alias=_env("fetch_timeout_ms", "FETCH_TIMEOUT_MS"))

    # Retry
    retry_attempts: int = Field(default=2, ge=1, validation_alias=_env("retry_attempts", "PROXY_RETRY_ATTEMPTS"))
    retry_base_delay: float = Field(default=0.5, ge=0, validation_alias=_env("retry_base_delay", "PROXY_RETRY_BASE_DELAY"))
    retry_max_delay: float = Field(default=2.0, ge=0, validation_alias=_env("retry_max_delay", "PROXY_RETRY_MAX_DELAY"))

    # Cache
    cache_ttl: float = Field(default=30.0, ge=0, validation_alias=_env("cache_ttl", "CACHE_TTL"))
    cache_backend: Literal["memory", "redis"] = Field(default="memory", validation_alias=_env("cache_backend", "CACHE_BACKEND"))
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias=_env("redis_url", "REDIS_URL"))
    cache_max_entries: int = Field(default=10000, ge=1, validation_alias=_env("cache_max_entries", "CACHE_MAX_ENTRIES"))
    cache_rate_limited: bool = Field(default=False, validation_alias=_env("cache_rate_limited", "CACHE_RATE_LIMITED"))

    # Routes
    allow_raw_proxy: bool = Field(default=False, validation_alias=_env("allow_raw_proxy", "ALLOW_RAW_PROXY"))
    strict_tag_validation: bool = Field(
        default=False,
        validation_alias=_env("strict_tag_validation", "STRICT_TAG_VALIDATION"),
    )

    @property
    def timeout_seconds(self) -> float:
        return self.fetch_timeout_ms / 1000.0


def get_config(**overrides) -> ProxyConfig:
    """Load proxy configuration from the environment, with keyword overrides."""
    return ProxyConfig(**overrides)
