"""
Core settings management for blueprint_storage.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from PySide6.QtCore import QSettings

from .types import ConfigVersion, ValidationResult
from .migration import SettingsMigrator
from .validation import SettingsValidator
from .paths import PathSettings
from .decoder import DecoderSettings
from .logging import LoggingSettings

logger = logging.getLogger(__name__)


class AppSettings:
    """
    Configuration management using QSettings.

    Provides type-safe access to decoder and application settings with
    cross-platform storage and validation.
    """

    def __init__(self, profile: str = "default", file_path: Optional[Union[str, Path]] = None):
        """Initialize settings for a profile.

        Args:
            profile: Settings profile name (default: "default")
            file_path: Explicit INI file to use instead of the platform store
        """
        if file_path is not None:
            self.settings = QSettings(str(file_path), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings("blueprint_storage", "blueprint_storage")
        self.profile = profile

        # Use profile as a group: blueprint_storage/default/...
        self.settings.beginGroup(profile)

        # Initialize subsystems
        self._migrator = SettingsMigrator(self.settings)
        self._validator = SettingsValidator(self)
        self._paths = PathSettings(self.settings)
        self._decoder = DecoderSettings(self.settings)
        self._logging = LoggingSettings(self.settings)

        # Ensure version and migrate if needed
        self._migrator.ensure_version()

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def paths(self) -> PathSettings:
        """Access path settings subsystem."""
        return self._paths

    @property
    def decoder(self) -> DecoderSettings:
        """Access decoder settings subsystem."""
        return self._decoder

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    # === VERSION ===

    @property
    def version(self) -> str:
        """Get configuration version."""
        value = self.settings.value("app/version", ConfigVersion.CURRENT.value)
        return str(value) if value is not None else ConfigVersion.CURRENT.value

    # === PATH SETTINGS (DELEGATED) ===

    @property
    def factorio_dir(self) -> Path:
        """Get Factorio user data directory."""
        return self._paths.factorio_dir

    @factorio_dir.setter
    def factorio_dir(self, value: Optional[Path]) -> None:
        """Set Factorio user data directory."""
        self._paths.factorio_dir = value

    @property
    def blueprint_storage_path(self) -> Path:
        """Get blueprint storage file path (derived from factorio_dir)."""
        return self._paths.blueprint_storage_path

    @property
    def recent_files(self) -> List[str]:
        """Get list of recently decoded files."""
        return self._paths.recent_files

    def add_recent_file(self, file_path: Union[str, Path]) -> None:
        """Add file to recent files list (max 10 items)."""
        self._paths.add_recent_file(file_path)

    def clear_recent_files(self) -> None:
        """Clear recent files list."""
        self._paths.clear_recent_files()

    # === LOGGING SETTINGS (DELEGATED) ===

    @property
    def console_logging(self) -> bool:
        """Check if console logging is enabled."""
        return self._logging.console_logging

    @console_logging.setter
    def console_logging(self, value: bool) -> None:
        self._logging.console_logging = value

    @property
    def console_log_level(self) -> str:
        """Get console logging level."""
        return self._logging.console_log_level

    @console_log_level.setter
    def console_log_level(self, value: str) -> None:
        self._logging.console_log_level = value

    @property
    def console_use_colors(self) -> bool:
        """Check if console should use colors."""
        return self._logging.console_use_colors

    @console_use_colors.setter
    def console_use_colors(self, value: bool) -> None:
        self._logging.console_use_colors = value

    @property
    def file_logging(self) -> bool:
        """Check if file logging is enabled."""
        return self._logging.file_logging

    @file_logging.setter
    def file_logging(self, value: bool) -> None:
        self._logging.file_logging = value

    @property
    def log_file_path(self) -> str:
        """Get log file path (read-only)."""
        return self._logging.log_file_path

    @property
    def log_file_absolute_path(self) -> Path:
        """Get absolute path to log file."""
        return self._logging.log_file_absolute_path

    # === VALIDATION ===

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate()

    # === UTILITY METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the file path where settings are stored."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Force synchronization of settings to storage."""
        self.settings.sync()
