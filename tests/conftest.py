"""Shared fixtures for blueprint_storage tests."""

import logging
from pathlib import Path
from typing import Iterator

import pytest

from support import storage, blueprint_slot, book_slot


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """INI file path for an isolated AppSettings store."""
    return tmp_path / "settings.ini"


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Put root logger handlers back after a test reconfigures logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def sample_storage() -> bytes:
    """A 2.0 stream with a blueprint, an empty slot and a book with one child."""
    return storage(
        blueprint_slot("Smelting", payload=b"\x01\x02\x03"),
        b"\x00",
        book_slot(
            "Trains",
            children=[blueprint_slot("Station", payload=b"\xaa")],
            description="All train things",
            icons=[(0, 10)],
        ),
    )


@pytest.fixture
def sample_file(tmp_path: Path, sample_storage: bytes) -> Path:
    path = tmp_path / "blueprint-storage-2.dat"
    path.write_bytes(sample_storage)
    return path
