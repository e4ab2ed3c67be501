"""
Path-related settings for blueprint_storage.
"""

import os
import sys
from pathlib import Path
from typing import List, Optional, Union, TYPE_CHECKING, cast

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

STORAGE_FILE_V1 = "blueprint-storage.dat"
STORAGE_FILE_V2 = "blueprint-storage-2.dat"


def default_factorio_dir() -> Path:
    """Return the platform's Factorio user data directory.

    FACTORIO_DIR in the environment takes precedence.
    """
    override = os.environ.get("FACTORIO_DIR")
    if override:
        return Path(override)
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", ".")) / "Factorio"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "factorio"
    return Path.home() / ".factorio"


class PathSettings:
    """Manages path-related settings."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_list(self, key: str, default: Optional[List[str]] = None) -> List[str]:
        """Type-safe list retrieval from settings."""
        if default is None:
            default = []
        value = self.settings.value(key, default)
        if isinstance(value, list):
            return [
                str(item) if item is not None else ""
                for item in cast(list[object], value)
            ]
        # A single-element list comes back as a plain string from INI files
        if isinstance(value, str) and value:
            return [value]
        return default

    @property
    def factorio_dir(self) -> Path:
        """Get Factorio user data directory (configured or platform default)."""
        path_str = self._get_str("paths/factorio", "")
        return Path(path_str) if path_str else default_factorio_dir()

    @factorio_dir.setter
    def factorio_dir(self, value: Optional[Path]) -> None:
        """Set Factorio user data directory; None restores the default."""
        self.settings.setValue("paths/factorio", str(value) if value else "")
        self.settings.sync()

    @property
    def use_v2_storage(self) -> bool:
        """Whether to read the 2.0 storage file rather than the 1.x one."""
        return self._get_bool("paths/use_v2_storage", True)

    @use_v2_storage.setter
    def use_v2_storage(self, value: bool) -> None:
        self.settings.setValue("paths/use_v2_storage", value)
        self.settings.sync()

    @property
    def blueprint_storage_path(self) -> Path:
        """Get blueprint storage file path (derived from factorio_dir)."""
        name = STORAGE_FILE_V2 if self.use_v2_storage else STORAGE_FILE_V1
        return self.factorio_dir / name

    @property
    def recent_files(self) -> List[str]:
        """Get list of recently decoded files."""
        return self._get_list("paths/recent_files", [])

    def add_recent_file(self, file_path: Union[str, Path]) -> None:
        """Add file to recent files list (max 10 items)."""
        recent = self.recent_files
        file_str = str(file_path)

        # Remove if already exists
        if file_str in recent:
            recent.remove(file_str)

        # Add to beginning
        recent.insert(0, file_str)

        # Keep only 10 most recent
        recent = recent[:10]

        self.settings.setValue("paths/recent_files", recent)
        self.settings.sync()

    def clear_recent_files(self) -> None:
        """Clear recent files list."""
        self.settings.setValue("paths/recent_files", [])
        self.settings.sync()
