"""
Incremental byte reader over an asyncio stream.

ByteCursor knows nothing about the blueprint format. It hands out exact byte
counts, suspends while the stream has not delivered enough data yet and turns
end-of-input or stream failures into decode errors.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .errors import StreamExhaustionError, StreamReadError, StructuralError
from .observer import DecodeObserver, GuardedObserver

logger = logging.getLogger(__name__)

# Largest single read request accepted (1 GiB)
MAX_READ_SIZE = 2**30

DEFAULT_CHUNK_SIZE = 64 * 1024


class ByteCursor:
    """Exact-length reads with lookahead over an asyncio.StreamReader."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        observer: Optional[DecodeObserver] = None,
        max_read_size: int = MAX_READ_SIZE,
    ):
        self._reader = reader
        self._pushback = bytearray()
        self.observer = (
            observer if isinstance(observer, GuardedObserver) else GuardedObserver(observer)
        )
        self.max_read_size = max_read_size
        self.position = 0

    async def read(self, length: int) -> bytes:
        """Read exactly `length` bytes, waiting for the stream as needed.

        Raises:
            StructuralError: for negative or oversized requests.
            StreamExhaustionError: if the stream ends first.
            StreamReadError: if the stream itself fails.
        """
        if length < 0:
            raise StructuralError(f"Can't read negative ({length}) bytes", self.position)
        if length > self.max_read_size:
            raise StructuralError(f"Reading {length} bytes is too large", self.position)

        data = bytes(self._pushback[:length])
        del self._pushback[:length]

        missing = length - len(data)
        if missing:
            try:
                data += await self._reader.readexactly(missing)
            except asyncio.IncompleteReadError as e:
                raise StreamExhaustionError(
                    length, len(data) + len(e.partial), self.position
                ) from e
            except Exception as e:
                raise StreamReadError(f"Stream failed: {e}", self.position) from e

        self.observer.read(data, self.position)
        self.position += length
        return data

    async def peek(self, length: int) -> bytes:
        """Read `length` bytes and push them back; the position is unchanged."""
        self.observer.peek()
        data = await self.read(length)
        self._pushback[:0] = data
        self.position -= length
        return data

    async def drain(self) -> bytes:
        """Consume and return everything up to the end of the stream."""
        data = bytes(self._pushback)
        self._pushback.clear()
        try:
            data += await self._reader.read()
        except Exception as e:
            raise StreamReadError(f"Stream failed: {e}", self.position) from e
        return data


def reader_from_bytes(data: bytes) -> asyncio.StreamReader:
    """Create a finished stream holding `data`. Must run inside an event loop."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


async def feed_file(
    reader: asyncio.StreamReader,
    path: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Feed a file into `reader` chunk by chunk from a worker thread.

    Open and read failures are forwarded to the reader so that the consumer
    fails instead of waiting forever. When cancelled, the worker's pending
    read is allowed to finish before the file is closed.
    """
    loop = asyncio.get_running_loop()
    try:
        handle = await loop.run_in_executor(None, Path(path).open, "rb")
    except OSError as e:
        logger.debug(f"Could not open {path}: {e}")
        reader.set_exception(e)
        return

    pending: Optional["asyncio.Future[bytes]"] = None
    try:
        while True:
            pending = loop.run_in_executor(None, handle.read, chunk_size)
            chunk = await asyncio.shield(pending)
            if not chunk:
                break
            reader.feed_data(chunk)
        reader.feed_eof()
    except OSError as e:
        reader.set_exception(e)
    finally:
        if pending is not None and not pending.done():
            await asyncio.wait([pending])
            error = pending.exception()
            if error is not None:
                logger.debug(f"Read from {path} failed after cancellation: {error}")
        handle.close()
