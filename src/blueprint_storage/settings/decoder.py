"""
Decoder-related settings for blueprint_storage.
"""

import logging
from typing import TYPE_CHECKING

from ..decoder.cursor import DEFAULT_CHUNK_SIZE, MAX_READ_SIZE
from ..decoder.session import DecodeOptions

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_TIMEOUT = 0.1


class DecoderSettings:
    """Manages decoder tunables."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int) -> int:
        value = self.settings.value(key, default)
        try:
            return int(str(value)) if value is not None else default
        except (ValueError, TypeError):
            return default

    @property
    def drain_timeout(self) -> float:
        """Seconds to wait for the end of the stream after decoding."""
        value = self.settings.value("decoder/drain_timeout", DEFAULT_DRAIN_TIMEOUT)
        try:
            return float(str(value)) if value is not None else DEFAULT_DRAIN_TIMEOUT
        except (ValueError, TypeError):
            return DEFAULT_DRAIN_TIMEOUT

    @drain_timeout.setter
    def drain_timeout(self, value: float) -> None:
        if value > 0:
            self.settings.setValue("decoder/drain_timeout", float(value))
        else:
            logger.warning(
                f"Invalid drain timeout: {value}, keeping current: {self.drain_timeout}"
            )

    @property
    def max_read_size(self) -> int:
        """Largest single read the cursor accepts, in bytes."""
        return self._get_int("decoder/max_read_size", MAX_READ_SIZE)

    @max_read_size.setter
    def max_read_size(self, value: int) -> None:
        if value > 0:
            self.settings.setValue("decoder/max_read_size", value)
        else:
            logger.warning(
                f"Invalid max read size: {value}, keeping current: {self.max_read_size}"
            )

    @property
    def check_strings(self) -> bool:
        """Whether decoded strings are checked against the allowed characters."""
        return self._get_bool("decoder/check_strings", True)

    @check_strings.setter
    def check_strings(self, value: bool) -> None:
        self.settings.setValue("decoder/check_strings", value)

    @property
    def chunk_size(self) -> int:
        """Bytes per chunk when feeding files into the decoder."""
        return self._get_int("decoder/chunk_size", DEFAULT_CHUNK_SIZE)

    @chunk_size.setter
    def chunk_size(self, value: int) -> None:
        if value > 0:
            self.settings.setValue("decoder/chunk_size", value)
        else:
            logger.warning(
                f"Invalid chunk size: {value}, keeping current: {self.chunk_size}"
            )

    def to_options(self) -> DecodeOptions:
        """Snapshot the current values for one decode run."""
        return DecodeOptions(
            drain_timeout=self.drain_timeout,
            max_read_size=self.max_read_size,
            check_strings=self.check_strings,
            chunk_size=self.chunk_size,
        )
