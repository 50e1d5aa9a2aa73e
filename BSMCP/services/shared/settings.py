"""Centralized configuration management using Pydantic settings.

This module provides type-safe, validated configuration loading from:
1. YAML config files (config.yaml + environment overlays)
2. Environment variables and an optional .env file (highest precedence)

The settings object is loaded once at process start and handed to every
component constructor; components never call ``get_settings()`` themselves.

Usage:
    from BSMCP.services.shared.settings import get_settings

    settings = get_settings()
    registry = ToolRegistry.from_settings(settings)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class _EnvFirstSettings(BaseSettings):
    """Settings section where environment variables beat YAML-provided values."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, dotenv_settings, init_settings, file_secret_settings


# === Server identity ===

class ServerConfig(_EnvFirstSettings):
    """Name and version reported to MCP clients and the upstream API."""
    model_config = SettingsConfigDict(env_prefix="BSMCP_SERVER_", env_file=".env", extra="ignore")

    name: str = "brave-search-mcp"
    version: str = "1.0.0"
    description: str = (
        "MCP server for Brave Search API integration with web, news, "
        "image and video search tools"
    )


# === Upstream search API ===

class BraveConfig(_EnvFirstSettings):
    """Brave Search API configuration.

    A missing ``api_key`` switches every tool to mock data.
    """
    model_config = SettingsConfigDict(env_prefix="BRAVE_", env_file=".env", extra="ignore")

    api_key: Optional[SecretStr] = None
    api_url: str = "https://api.search.brave.com/res/v1"
    timeout_seconds: float = Field(30.0, gt=0)

    @field_validator("api_url")
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @field_validator("api_key", mode="before")
    def empty_key_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# === Caching ===

class CacheConfig(_EnvFirstSettings):
    """Two-tier result cache configuration."""
    model_config = SettingsConfigDict(env_prefix="CACHE_", env_file=".env", extra="ignore")

    enabled: bool = True
    ttl_seconds: int = Field(300, ge=1)
    max_entries: int = Field(1000, ge=1)
    redis_url: Optional[str] = None
    resource_ttl_seconds: int = Field(300, ge=1)


# === Request limits ===

class LimitsConfig(_EnvFirstSettings):
    """Ceilings applied on top of the fixed tool schemas."""
    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    max_query_length: int = Field(400, ge=1)
    max_results: int = Field(20, ge=1)
    rate_limit_per_minute: int = Field(100, ge=1)


# === Observability ===

class LoggingConfig(_EnvFirstSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    directory: Optional[str] = None

    @field_validator("level")
    def upper_level(cls, v):
        return v.upper()


class SentryConfig(_EnvFirstSettings):
    """Sentry error tracking configuration."""
    model_config = SettingsConfigDict(env_prefix="SENTRY_", env_file=".env", extra="ignore")

    dsn: Optional[SecretStr] = None
    traces_sample_rate: float = Field(0.1, ge=0.0, le=1.0)
    environment: str = "development"


# === HTTP front end ===

class HttpConfig(_EnvFirstSettings):
    """FastAPI front-end configuration."""
    model_config = SettingsConfigDict(env_prefix="BSMCP_HTTP_", env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    # Comma-separated list; "*" allows every origin.
    cors_allow_origins: str = "*"

    @property
    def cors_origins(self) -> List[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]


# === Main Settings ===

SECTIONS = {
    "server": ServerConfig,
    "brave": BraveConfig,
    "cache": CacheConfig,
    "limits": LimitsConfig,
    "logging": LoggingConfig,
    "sentry": SentryConfig,
    "http": HttpConfig,
}


class BSMCPSettings(BaseSettings):
    """Main configuration."""
    environment: str = Field("development", validation_alias="BSMCP_ENV")
    server: ServerConfig = Field(default_factory=ServerConfig)
    brave: BraveConfig = Field(default_factory=BraveConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sentry: SentryConfig = Field(default_factory=SentryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def brave_api_key(self) -> Optional[str]:
        """The configured credential as plain text, or None in mock mode."""
        if self.brave.api_key is None:
            return None
        return self.brave.api_key.get_secret_value()


def _load_yaml_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML files with environment overlay.

    Args:
        config_path: Path to base config file. If None, uses
                    BSMCP/config/config.yaml.

    Returns:
        Merged configuration dictionary.
    """
    if config_path is None:
        package_root = Path(__file__).parent.parent.parent
        config_path = package_root / "config" / "config.yaml"

    if not config_path.exists():
        # Env vars and defaults only
        return {}

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    env = os.getenv("BSMCP_ENV", config.get("environment", "development"))
    env_config_path = config_path.parent / f"config.{env}.yaml"

    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            env_config = yaml.safe_load(f) or {}
        config = _deep_merge(config, env_config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def build_settings(config: Optional[dict] = None) -> BSMCPSettings:
    """Build settings from an already-loaded YAML mapping.

    Each section is constructed on its own so that environment variables
    still take precedence over the YAML values for that section.
    """
    config = config or {}
    sections = {}
    for name, section_cls in SECTIONS.items():
        values = config.get(name) or {}
        if not isinstance(values, dict):
            raise ValueError(f"Config section '{name}' must be a mapping")
        sections[name] = section_cls(**values)

    environment = os.getenv("BSMCP_ENV", config.get("environment", "development"))
    return BSMCPSettings(environment=environment, **sections)


@lru_cache(maxsize=1)
def get_settings(config_path: Optional[Path] = None) -> BSMCPSettings:
    """Get cached settings instance.

    Configuration precedence (highest to lowest):
    1. Environment variables (e.g., BRAVE_API_KEY, CACHE_TTL_SECONDS)
    2. .env file in the working directory
    3. Environment-specific YAML (e.g., config.production.yaml)
    4. Base YAML config (config.yaml)
    """
    return build_settings(_load_yaml_config(config_path))


def reload_settings(config_path: Optional[Path] = None) -> BSMCPSettings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings(config_path)
