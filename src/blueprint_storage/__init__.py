"""
blueprint_storage: decoder for Factorio's blueprint library file

Reads blueprint-storage.dat as a stream and turns it into an immutable tree of
blueprints, blueprint books and planners, with optional annotated traces for
reverse engineering unknown fields.
"""

__version__ = "0.1.0"
__author__ = "blueprint_storage Contributors"

from .decoder import (
    DecodeError,
    DecodeOptions,
    decode,
    decode_bytes,
    decode_file,
    decode_file_sync,
)
from .export import to_dict, to_json
from .utils.logging_config import setup_logging

# Main data models
from .models import (
    Blueprint, BlueprintBook, DeconstructionPlanner, UpgradePlanner,
    DecodedSession, LibraryEntry, Version, Category,
)

__all__ = [
    # Decoding
    'decode',
    'decode_bytes',
    'decode_file',
    'decode_file_sync',
    'DecodeOptions',
    'DecodeError',

    # Output
    'to_json',
    'to_dict',

    # Logging
    'setup_logging',

    # Data models
    'Blueprint',
    'BlueprintBook',
    'DeconstructionPlanner',
    'UpgradePlanner',
    'DecodedSession',
    'LibraryEntry',
    'Version',
    'Category',
]
