"""
Top-level decoding of a blueprint storage stream.

The session decoder walks the stream strictly front to back: version header,
expansion manifest, prototype dictionary, bookkeeping fields, the root
library object array, the version-gated trailer and finally a drain proving
that nothing is left over.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..models import DecodedSession, TrailingValidation, Version
from .cursor import (
    DEFAULT_CHUNK_SIZE,
    MAX_READ_SIZE,
    ByteCursor,
    feed_file,
    reader_from_bytes,
)
from .errors import (
    DrainTimeoutError,
    StructuralError,
    TrailingDataError,
    UnsupportedVersionError,
)
from .library import LibraryDecoder
from .observer import DecodeObserver, GuardedObserver
from .primitives import PrimitiveCodec
from .prototypes import read_prototype_index

logger = logging.getLogger(__name__)

# Streams at or below this version predate the supported format
MINIMUM_VERSION = Version(1, 0, 0)

# First version with the targetables trailer
TARGETABLES_VERSION = Version(1, 2, 0, 0xA7)

# Highest major version the format model has been checked against
NEWEST_KNOWN_MAJOR = 2


@dataclass(frozen=True)
class DecodeOptions:
    """Tunables of a decode run."""
    drain_timeout: float = 0.1
    max_read_size: int = MAX_READ_SIZE
    check_strings: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE


class SessionDecoder:
    """Decodes one stream into a DecodedSession. Use once."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        observer: Optional[DecodeObserver] = None,
        options: Optional[DecodeOptions] = None,
    ):
        self.options = options or DecodeOptions()
        self.observer = GuardedObserver(observer)
        self.cursor = ByteCursor(reader, self.observer, self.options.max_read_size)
        self.codec = PrimitiveCodec(self.cursor, self.options.check_strings)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def decode(self) -> DecodedSession:
        codec = self.codec

        version = await self._read_version()

        await codec.expect(0, "Initial bool false check")

        expansions = await self._read_expansions()

        dictionary_header, index = await read_prototype_index(codec)

        with codec.label("playerIndex"):
            player_index = await codec.read_fixed_uint(2)
        with codec.label("generationCounter"):
            generation_counter = await codec.read_fixed_uint(4)
        with codec.label("saveTime"):
            save_time = await codec.read_date(version)

        with codec.label("synchronized"):
            synchronized = await codec.read_boolean()
        if not synchronized:
            raise UnsupportedVersionError(
                "Unsynchronized blueprints are not supported", codec.position
            )

        library = LibraryDecoder(codec, index, version)
        blueprints = await library.decode_library_objects()
        self.logger.info(
            f"Decoded {len(blueprints)} library slots "
            f"({sum(entry is not None for entry in blueprints)} used)"
        )

        trailing = await self._read_trailer(version)

        return DecodedSession(
            version=version,
            expansions=expansions,
            dictionary_header=dictionary_header,
            player_index=player_index,
            generation_counter=generation_counter,
            save_time=save_time,
            blueprints=tuple(blueprints),
            trailing=trailing,
        )

    async def _read_version(self) -> Version:
        codec = self.codec
        with codec.label("version"):
            parts: List[int] = []
            for name in ("major", "minor", "patch", "developer"):
                with codec.label(name):
                    parts.append(await codec.read_fixed_uint(2))
        with codec.label("branchVersion"):
            branch = await codec.read_fixed_uint(1)

        version = Version(*parts, branch=branch)
        self.logger.debug(f"Stream version {version} (branch {branch})")

        if branch != 0:
            raise StructuralError(f"Unexpected branch version {branch}", codec.position)
        if version <= MINIMUM_VERSION:
            raise UnsupportedVersionError(
                f"Blueprint version {version} is less than or equal to {MINIMUM_VERSION}",
                codec.position,
            )
        if version.major > NEWEST_KNOWN_MAJOR:
            self.logger.warning(
                f"Blueprint major version {version.major} is greater than {NEWEST_KNOWN_MAJOR}"
            )
        return version

    async def _read_expansions(self) -> Dict[str, tuple[str, ...]]:
        codec = self.codec
        manifest: Dict[str, List[str]] = {}

        async def read_expansion(_: int) -> None:
            with codec.label("game"):
                mod_name = await codec.read_string()

            async def read_file(_: int) -> None:
                with codec.label("file"):
                    manifest.setdefault(mod_name, []).append(await codec.read_string())

            manifest.setdefault(mod_name, [])
            await codec.read_array(1, read_file)

        with codec.label("expansions"):
            await codec.read_array(1, read_expansion)

        return {mod_name: tuple(files) for mod_name, files in manifest.items()}

    async def _read_trailer(self, version: Version) -> TrailingValidation:
        codec = self.codec
        trailer_present = version >= TARGETABLES_VERSION
        saved_targetables: Optional[int] = None
        mappings = 0

        if trailer_present:
            if version > TARGETABLES_VERSION:
                with codec.label("savedTargetablesCount"):
                    saved_targetables = await codec.read_flexible_count()
                if saved_targetables != 0:
                    raise UnsupportedVersionError(
                        f"savedTargetablesCount is {saved_targetables}. Not yet implemented.",
                        codec.position,
                    )

            with codec.label("targeterToTargetableMapping"):
                targets = await codec.read_counted_array(
                    lambda _: codec.read_fixed_uint(4)
                )
            mappings = len(targets)
            if mappings:
                raise UnsupportedVersionError(
                    f"targeterToTargetableMapping is {mappings}. Not yet implemented.",
                    codec.position,
                )

            await codec.expect(0, "v2-Unknown2")

        await self._drain()

        return TrailingValidation(
            trailer_present=trailer_present,
            saved_targetables_count=saved_targetables,
            targeter_mappings=mappings,
        )

    async def _drain(self) -> None:
        """Require the stream to end exactly here."""
        position = self.cursor.position
        try:
            remaining = await asyncio.wait_for(
                self.cursor.drain(), self.options.drain_timeout
            )
        except asyncio.TimeoutError as e:
            raise DrainTimeoutError("Timeout reading remaining data", position) from e

        if remaining:
            with self.codec.label("RemainingData"):
                self.observer.read(remaining, position)
            raise TrailingDataError(len(remaining), position)


async def decode(
    reader: asyncio.StreamReader,
    observer: Optional[DecodeObserver] = None,
    options: Optional[DecodeOptions] = None,
) -> DecodedSession:
    """Decode a blueprint storage stream.

    Args:
        reader: Stream delivering the file contents
        observer: Optional diagnostic observer
        options: Decode tunables; defaults when omitted

    Returns:
        The decoded session

    Raises:
        DecodeError: on any failure; no partial result is returned
    """
    return await SessionDecoder(reader, observer, options).decode()


async def decode_bytes(
    data: bytes,
    observer: Optional[DecodeObserver] = None,
    options: Optional[DecodeOptions] = None,
) -> DecodedSession:
    """Decode an in-memory blueprint storage image."""
    return await decode(reader_from_bytes(data), observer, options)


async def decode_file(
    path: Union[str, Path],
    observer: Optional[DecodeObserver] = None,
    options: Optional[DecodeOptions] = None,
) -> DecodedSession:
    """Decode a blueprint storage file while it is being read."""
    options = options or DecodeOptions()
    reader = asyncio.StreamReader()
    feeder = asyncio.create_task(feed_file(reader, path, options.chunk_size))
    try:
        return await decode(reader, observer, options)
    finally:
        if not feeder.done():
            feeder.cancel()
        try:
            await feeder
        except asyncio.CancelledError:
            pass


def decode_file_sync(
    path: Union[str, Path],
    observer: Optional[DecodeObserver] = None,
    options: Optional[DecodeOptions] = None,
) -> DecodedSession:
    """Blocking wrapper around decode_file for scripts."""
    return asyncio.run(decode_file(path, observer, options))
