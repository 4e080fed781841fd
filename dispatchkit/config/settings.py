"""Top-level settings merged from the environment, .env and TOML config."""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dispatchkit.core.log_categories import CONFIG
from dispatchkit.core.logging import get_logger

from .dispatch import DispatchSettings
from .logging import LoggingSettings
from .server import ServerSettings


__all__ = ["Settings", "ConfigurationError", "get_settings", "find_toml_config_file"]

ENV_PREFIX = "DISPATCHKIT_"
CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG_FILENAME = ".dispatchkit.toml"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def find_toml_config_file() -> Path | None:
    """Return ``./.dispatchkit.toml`` when it exists."""
    candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if candidate.is_file():
        return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration settings for the dispatch engine.

    Settings are loaded from environment variables (``DISPATCHKIT_`` prefix,
    ``__`` between nested keys), .env files, and an optional TOML file.
    Environment variables take precedence over TOML values.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    dispatch: DispatchSettings = Field(
        default_factory=DispatchSettings,
        description="Content negotiation and error rendering configuration",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration for the serve command",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings from an optional TOML file, the environment and overrides.

        Precedence, highest first: keyword overrides, environment and .env
        file, TOML file, defaults.
        """
        if config_path is None:
            config_path_env = os.environ.get(CONFIG_FILE_ENV)
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).info(
                "config_file_loaded", path=str(config_path), category=CONFIG
            )

        try:
            settings = cls()
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        merged: dict[str, Any] = {}

        # Fields set on the constructed model came from the environment or .env.
        for key, value in config_data.items():
            if key not in cls.model_fields:
                continue
            if isinstance(value, dict):
                current = getattr(settings, key)
                section = current.model_dump()
                for nested_key, nested_value in value.items():
                    if nested_key not in current.model_fields_set:
                        section[nested_key] = nested_value
                merged[key] = section
            elif key not in settings.model_fields_set:
                merged[key] = value

        for key, value in kwargs.items():
            if isinstance(value, dict) and key in cls.model_fields:
                section = merged.get(key) or getattr(settings, key).model_dump()
                section.update(value)
                merged[key] = section
            else:
                merged[key] = value

        if not merged:
            return settings

        data = settings.model_dump()
        data.update(merged)
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings.from_config()
