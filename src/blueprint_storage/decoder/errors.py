"""
Exception hierarchy for the blueprint storage decoder.

Every failure of a decode attempt is a DecodeError. ObserverError sits
outside that hierarchy and never escapes a decode.
"""

from typing import Optional


class DecodeError(Exception):
    """Base class for all decode failures."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (at offset 0x{position:X})"
        super().__init__(message)


class StructuralError(DecodeError):
    """Malformed or unexpected bytes; the stream is desynchronized."""
    pass


class UnresolvedReferenceError(DecodeError):
    """A numeric prototype reference has no entry in the dictionary."""
    pass


class StreamReadError(DecodeError):
    """The underlying byte stream failed or was aborted."""
    pass


class StreamExhaustionError(StreamReadError):
    """End of input was reached before the requested bytes arrived."""

    def __init__(self, requested: int, available: int, position: Optional[int] = None):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Stream ended after reading {available} of {requested} bytes", position
        )


class TrailingDataError(DecodeError):
    """Bytes remain after the structured decode finished."""

    def __init__(self, remaining: int, position: Optional[int] = None):
        self.remaining = remaining
        super().__init__(f"Unexpected {remaining} bytes remaining in stream", position)


class DrainTimeoutError(DecodeError):
    """The stream did not reach its end while draining trailing bytes."""
    pass


class UnsupportedVersionError(DecodeError):
    """The stream uses a format version or feature this decoder cannot read."""
    pass


class ObserverError(Exception):
    """Raised by a decode observer that detected misuse of its own protocol."""
    pass
