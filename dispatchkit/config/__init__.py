"""Configuration for the dispatch engine."""

from .dispatch import DispatchSettings
from .logging import LoggingSettings
from .server import ServerSettings
from .settings import ConfigurationError, Settings, get_settings


__all__ = [
    "ConfigurationError",
    "DispatchSettings",
    "LoggingSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
