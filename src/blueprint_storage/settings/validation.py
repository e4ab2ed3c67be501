"""
Settings validation system for blueprint_storage.
"""

import logging
from pathlib import Path
from typing import List, TYPE_CHECKING

from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []

        # Validate Factorio directory
        factorio_dir = self.settings.factorio_dir
        if not factorio_dir.exists():
            warnings.append(f"Factorio directory does not exist: {factorio_dir}")
        elif not self.settings.blueprint_storage_path.exists():
            warnings.append(
                f"No blueprint storage in Factorio directory: {self.settings.blueprint_storage_path}"
            )

        # Validate decoder tunables
        decoder = self.settings.decoder
        if decoder.drain_timeout <= 0:
            errors.append(f"Drain timeout must be positive: {decoder.drain_timeout}")
        if decoder.max_read_size <= 0:
            errors.append(f"Max read size must be positive: {decoder.max_read_size}")
        if decoder.chunk_size <= 0:
            errors.append(f"Chunk size must be positive: {decoder.chunk_size}")

        # Validate recent files
        recent_files = self.settings.recent_files
        valid_recent: List[str] = []
        for file_path in recent_files:
            if Path(file_path).exists():
                valid_recent.append(file_path)
            else:
                warnings.append(f"Recent file no longer exists: {file_path}")

        # Clean up invalid recent files
        if len(valid_recent) != len(recent_files):
            self.settings.settings.setValue("paths/recent_files", valid_recent)
            self.settings.settings.sync()

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
