"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from wasabi_mcp.core.exceptions import ConfigurationError

SERVER_NAME = "wasabi-mcp-server"
SERVER_VERSION = "1.0.0"

STORAGE_ENV_PREFIX = "WASABI_"
SERVER_ENV_PREFIX = "WASABI_MCP_"


class StorageConfig(BaseSettings):
    """Object storage connection. Every field is required."""

    model_config = {"env_prefix": STORAGE_ENV_PREFIX, "env_file": ".env", "extra": "ignore"}

    access_key_id: str = Field(min_length=1)
    secret_access_key: str = Field(min_length=1)
    region: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)  # host, or full URL

    @property
    def endpoint_url(self) -> str:
        if "://" in self.endpoint:
            return self.endpoint
        return f"https://{self.endpoint}"


class ServerConfig(BaseSettings):
    """Transport configuration."""

    model_config = {"env_prefix": SERVER_ENV_PREFIX, "env_file": ".env", "extra": "ignore"}

    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    session_idle_timeout: float = Field(default=30 * 60.0, gt=0)  # seconds


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": SERVER_ENV_PREFIX, "env_file": ".env", "extra": "ignore"}

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def _invalid(prefix: str, exc: ValidationError, reason: str) -> ConfigurationError:
    names = sorted({f"{prefix}{str(err['loc'][0]).upper()}" for err in exc.errors() if err["loc"]})
    return ConfigurationError("; ".join(f"{reason}: {name}" for name in names))


def load_settings() -> AppSettings:
    """Load settings, failing fast when storage credentials are incomplete."""
    try:
        storage = StorageConfig()
    except ValidationError as exc:
        raise _invalid(STORAGE_ENV_PREFIX, exc, "Missing required environment variable") from exc
    try:
        return AppSettings(storage=storage, server=ServerConfig())
    except ValidationError as exc:
        raise _invalid(SERVER_ENV_PREFIX, exc, "Invalid value for environment variable") from exc
