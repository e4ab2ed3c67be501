"""
Streaming decoder for blueprint storage files.

The byte-level pieces (ByteCursor, PrimitiveCodec) know nothing about
blueprints; PrototypeIndex, LibraryDecoder and SessionDecoder build the
format on top of them.
"""

from .cursor import ByteCursor, feed_file, reader_from_bytes, MAX_READ_SIZE
from .errors import (
    DecodeError,
    StructuralError,
    UnresolvedReferenceError,
    StreamReadError,
    StreamExhaustionError,
    TrailingDataError,
    DrainTimeoutError,
    UnsupportedVersionError,
    ObserverError,
)
from .observer import DecodeObserver, GuardedObserver
from .primitives import PrimitiveCodec
from .prototypes import PrototypeIndex, PROTOTYPE_CATEGORIES, read_prototype_index
from .library import LibraryDecoder
from .session import (
    DecodeOptions,
    SessionDecoder,
    decode,
    decode_bytes,
    decode_file,
    decode_file_sync,
)

__all__ = [
    # Entry points
    "decode",
    "decode_bytes",
    "decode_file",
    "decode_file_sync",
    "DecodeOptions",
    # Components
    "ByteCursor",
    "PrimitiveCodec",
    "PrototypeIndex",
    "LibraryDecoder",
    "SessionDecoder",
    "read_prototype_index",
    "feed_file",
    "reader_from_bytes",
    "PROTOTYPE_CATEGORIES",
    "MAX_READ_SIZE",
    # Observers
    "DecodeObserver",
    "GuardedObserver",
    # Errors
    "DecodeError",
    "StructuralError",
    "UnresolvedReferenceError",
    "StreamReadError",
    "StreamExhaustionError",
    "TrailingDataError",
    "DrainTimeoutError",
    "UnsupportedVersionError",
    "ObserverError",
]
