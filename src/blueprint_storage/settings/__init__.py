"""
Settings package for blueprint_storage.

This package provides a modular, type-safe configuration management system
using Qt's QSettings for cross-platform storage.

Usage:
    from blueprint_storage.settings import AppSettings

    settings = AppSettings()
    options = settings.decoder.to_options()
"""

from .core import AppSettings
from .decoder import DecoderSettings
from .paths import PathSettings
from .logging import LoggingSettings
from .types import ConfigVersion, ConfigError, ValidationResult

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "DecoderSettings",
    "LoggingSettings",
    "PathSettings",
    "ValidationResult",
]
