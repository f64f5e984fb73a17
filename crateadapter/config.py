"""Configuration management using pydantic-settings.

Settings come from, highest priority first: keyword arguments, environment
variables, the YAML file, a ``.env`` file and the field defaults.

The YAML file groups fields in sections::

    server:
      host: 0.0.0.0
      port: 9268
    crate:
      url: http://localhost:4200/_sql
      table: metrics
"""

import os
import re
import warnings
from pathlib import Path
from typing import Any, Literal, Tuple, Type
from urllib.parse import urlsplit, urlunsplit

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from crateadapter.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path("~/.crateadapter/config.yaml")
CONFIG_PATH_ENV = "CRATEADAPTER_CONFIG"

# YAML section -> {key in section: Settings field}
CONFIG_SECTIONS: dict[str, dict[str, str]] = {
    "server": {
        "host": "adapter_host",
        "port": "adapter_port",
        "workers": "adapter_workers",
    },
    "crate": {
        "url": "crate_url",
        "table": "crate_table",
        "timeout_seconds": "crate_timeout_seconds",
    },
    "limits": {
        "max_request_size_mb": "max_request_size_mb",
    },
    "logging": {
        "level": "log_level",
        "format": "log_format",
    },
}

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def redact_url(url: str) -> str:
    """Replace the ``user:password@`` part of a URL, keeping the host."""
    parts = urlsplit(url)
    if "@" not in parts.netloc:
        return url
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=f"***@{host}"))


def default_config_path() -> Path:
    """Config file used when none is given.

    ``$CRATEADAPTER_CONFIG`` if set, else ``~/.crateadapter/config.yaml``.
    """
    return Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)).expanduser()


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Explicit config file. When omitted the default location
            is used and a missing or unreadable file is not an error.

    Returns:
        Settings field values flattened from the YAML sections

    Raises:
        ConfigurationError: If an explicitly given file cannot be read or is
            not a mapping of sections
    """
    explicit = config_path is not None
    path = config_path if explicit else default_config_path()

    if not path.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {path}", path=str(path))
        return {}

    try:
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        if not isinstance(yaml_data, dict):
            raise ValueError("top level must be a mapping of sections")
    except (OSError, yaml.YAMLError, ValueError) as e:
        if explicit:
            raise ConfigurationError(
                f"Failed to load config from {path}: {e}", path=str(path)
            ) from e
        warnings.warn(f"Ignoring config file {path}: {e}")
        return {}

    flattened = {}
    for section, keys in CONFIG_SECTIONS.items():
        values = yaml_data.get(section) or {}
        for key, field_name in keys.items():
            if key in values:
                flattened[field_name] = values[key]
    return flattened


_config_path: Path | None = None


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading the YAML config file."""

    def get_field_value(self, field: Any, field_name: str) -> Tuple[Any, str, bool]:
        """Not used since we override __call__."""
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return load_yaml_config(_config_path)


class Settings(BaseSettings):
    """
    Adapter configuration settings.

    Environment variables use the field names, e.g.
    ``CRATE_URL=http://crate:4200/_sql`` or ``ADAPTER_PORT=9268``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    adapter_host: str = Field(default="0.0.0.0", description="Server bind address")
    adapter_port: int = Field(default=9268, ge=1, le=65535, description="Server port")
    adapter_workers: int = Field(
        default=1, ge=1, description="Number of worker processes"
    )

    crate_url: str = Field(
        default="http://localhost:4200/_sql",
        description="CrateDB HTTP SQL endpoint",
    )
    crate_table: str = Field(
        default="metrics",
        description="Table holding one row per sample",
    )
    crate_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single request to CrateDB",
    )

    max_request_size_mb: int = Field(
        default=32,
        ge=1,
        description="Max compressed remote read/write body size",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json", description="Log format"
    )

    @field_validator("crate_url")
    @classmethod
    def validate_crate_url(cls, v: str) -> str:
        """Require an HTTP(S) endpoint."""
        if urlsplit(v).scheme not in ("http", "https"):
            raise ValueError("CrateDB URL must be an http:// or https:// URL")
        return v

    @field_validator("crate_table")
    @classmethod
    def validate_crate_table(cls, v: str) -> str:
        """Table name is inlined into SQL, so only plain identifiers are accepted."""
        if not _TABLE_NAME.match(v):
            raise ValueError(f"Invalid table name: {v!r}")
        return v

    @property
    def max_request_size_bytes(self) -> int:
        """Get max request body size in bytes."""
        return self.max_request_size_mb * 1024 * 1024

    def to_sections(self, redact: bool = False) -> dict[str, dict[str, Any]]:
        """Group the settings the way the YAML file does.

        Args:
            redact: Hide credentials embedded in the CrateDB URL
        """
        sections = {
            section: {key: getattr(self, field) for key, field in keys.items()}
            for section, keys in CONFIG_SECTIONS.items()
        }
        if redact:
            sections["crate"]["url"] = redact_url(self.crate_url)
        return sections

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls),
            dotenv_settings,
        )


_settings: Settings | None = None


def get_settings(config_path: Path | None = None, reload: bool = False) -> Settings:
    """
    Get global settings instance.

    Args:
        config_path: YAML config file to use instead of the default location
        reload: Rebuild the settings even if they were already loaded

    Returns:
        Settings instance with merged configuration

    Raises:
        ConfigurationError: If ``config_path`` cannot be loaded
    """
    global _settings, _config_path
    if _settings is None or reload:
        _config_path = config_path
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget the loaded settings and config path."""
    global _settings, _config_path
    _settings = None
    _config_path = None
