"""
Configuration type definitions and exceptions for blueprint_storage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ConfigVersion(Enum):
    """Layout version stamped into every settings store."""
    V1_0 = "1.0"
    CURRENT = V1_0


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be accessed."""
    pass


@dataclass
class ValidationResult:
    """Errors and warnings collected by SettingsValidator."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        """Raise ConfigError listing every error, if there are any."""
        if self.errors:
            raise ConfigError("; ".join(self.errors))
