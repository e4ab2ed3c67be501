"""
Settings version stamping for blueprint_storage.
"""

import logging
from typing import TYPE_CHECKING

from .types import ConfigVersion

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)


class SettingsMigrator:
    """Keeps the stored layout version at ConfigVersion.CURRENT."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def ensure_version(self) -> None:
        """Stamp a new store, or restamp one written under another version."""
        current_version = str(self.settings.value("app/version", ""))

        if not current_version:
            self.settings.setValue("app/version", ConfigVersion.CURRENT.value)
            self.settings.sync()
            logger.info(f"New settings store, stamped version {ConfigVersion.CURRENT.value}")
        elif current_version != ConfigVersion.CURRENT.value:
            self._migrate_config(current_version, ConfigVersion.CURRENT.value)

    def _migrate_config(self, from_version: str, to_version: str) -> None:
        """Record the version change; no stored key has changed layout yet."""
        logger.info(f"Migrating configuration from {from_version} to {to_version}")
        self.settings.setValue("app/version", to_version)
        self.settings.setValue("app/migrated_from", from_version)
        self.settings.sync()
