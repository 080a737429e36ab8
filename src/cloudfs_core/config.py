"""Configuration loading with environment variable substitution."""

import json
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from cloudfs_core.caching import TTLCache
from cloudfs_core.configuration import StoreConfiguration
from cloudfs_core.exceptions import ConfigError
from cloudfs_core.observability import LogLevel, configure_logging
from cloudfs_core.plugins import create_file_store, create_serializer

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} patterns with environment variables."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigError(f"Environment variable {var_name} is not set")
            return env_value

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]
    return value


class FileStoreSettings(BaseModel):
    """File store backend configuration."""

    backend: str = "local"  # local | memory | http
    # Backend-specific settings
    path: str | None = None  # For local backend
    url: str | None = None  # For http backend
    token: str | None = None
    timeout: float = 30.0
    store_id: str | None = None

    def backend_kwargs(self) -> dict[str, Any]:
        """Settings passed to the backend constructor."""
        return self.model_dump(exclude={"backend"}, exclude_none=True)


class CacheSettings(BaseModel):
    """Local cache configuration."""

    ttl_seconds: int | None = 300
    max_size: int = 1000


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: str = "json"  # json | text


class ServerSettings(BaseModel):
    """HTTP store server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    # Bearer token required by the server; None disables authentication
    token: str | None = None


class Config(BaseModel):
    """Main configuration for cloudfs-core."""

    files: FileStoreSettings = Field(default_factory=FileStoreSettings)
    # None means the store's root directory
    default_directory: str | None = None
    cache: CacheSettings = Field(default_factory=CacheSettings)
    serializer: str = "json"
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def from_file(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        with path.open() as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        data = substitute_env_vars(data or {})
        return cls.model_validate(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Load configuration from a dictionary."""
        data = substitute_env_vars(data)
        return cls.model_validate(data)


def build_store_configuration(config: Config) -> StoreConfiguration:
    """Create the store, cache and serializer described by a Config.

    Args:
        config: Loaded configuration

    Returns:
        A StoreConfiguration ready to pass to file operations

    Raises:
        ConfigError: If a plugin is unknown or the default directory is invalid
    """
    store = create_file_store(config.files.backend, **config.files.backend_kwargs())

    default_directory = config.default_directory or store.get_root_directory()
    if store.try_get_full_path(default_directory) is None:
        raise ConfigError(
            f"Default directory {default_directory!r} is not a valid path for "
            f"the '{config.files.backend}' backend"
        )

    return StoreConfiguration(
        file_store=store,
        default_directory=default_directory,
        cache=TTLCache(
            ttl_seconds=config.cache.ttl_seconds,
            max_size=config.cache.max_size,
        ),
        serializer=create_serializer(config.serializer),
    )


def setup_logging(config: Config) -> None:
    """Apply the logging section of a Config."""
    configure_logging(level=config.logging.level, format=config.logging.format)
