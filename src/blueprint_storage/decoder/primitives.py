"""
Primitive value decoding on top of ByteCursor.

Integers are little-endian. Lengths and some indices use the flexible-width
count: one byte, or 0xFF followed by a u32.
"""

import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterator, List, Sequence, TypeVar

from ..models import Version
from .cursor import ByteCursor
from .errors import StructuralError

T = TypeVar("T")

ElementReader = Callable[[int], Awaitable[T]]

FLEXIBLE_COUNT_MARKER = 0xFF

# Last version storing save timestamps as u32 seconds
LAST_FOUR_BYTE_DATE_VERSION = Version(1, 2, 0, 0x175)

# Largest millisecond value a double represents exactly
MAX_SAFE_TIMESTAMP_MS = 2**53 - 1

FIXED_WIDTHS = (1, 2, 3, 4, 5, 6)
WIDE_WIDTH = 8

# Anything outside printable ASCII, TAB, LF and CR
BAD_STRING_CHARACTERS = re.compile(r"[^\x20-\x7E\t\n\r]")


def escape_text(value: str) -> str:
    """Render a string with non-printable characters escaped."""
    escapes = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
    return "".join(
        char if " " <= char <= "~" else escapes.get(char, f"\\x{ord(char):02x}")
        for char in value
    )


class PrimitiveCodec:
    """Decodes booleans, integers, counts, strings, dates and sentinels."""

    def __init__(self, cursor: ByteCursor, check_strings: bool = True):
        self.cursor = cursor
        self.observer = cursor.observer
        self.check_strings = check_strings

    @property
    def position(self) -> int:
        return self.cursor.position

    @contextmanager
    def label(self, name: str) -> Iterator[None]:
        """Scope subsequent reads under `name` for observers."""
        self.observer.push_label(name)
        try:
            yield
        finally:
            self.observer.pop_label(name)

    def _error(self, message: str) -> StructuralError:
        return StructuralError(message, self.cursor.position)

    async def read_bytes(self, length: int) -> bytes:
        return await self.cursor.read(length)

    # === INTEGERS ===

    async def _read_int(self, width: int, signed: bool) -> int:
        data = await self.cursor.read(width)
        value = int.from_bytes(data, "little", signed=signed)
        self.observer.decoded(str(value))
        return value

    async def read_fixed_uint(self, width: int) -> int:
        """Read an unsigned integer of 1 to 6 bytes."""
        if width not in FIXED_WIDTHS:
            raise self._error(f"Can't read {width} bytes as a number")
        return await self._read_int(width, signed=False)

    async def read_fixed_int(self, width: int) -> int:
        """Read a signed (two's complement) integer of 1 to 6 bytes."""
        if width not in FIXED_WIDTHS:
            raise self._error(f"Can't read {width} bytes as a number")
        return await self._read_int(width, signed=True)

    async def read_wide_uint(self) -> int:
        return await self._read_int(WIDE_WIDTH, signed=False)

    async def read_wide_int(self) -> int:
        return await self._read_int(WIDE_WIDTH, signed=True)

    async def read_uint(self, width: int) -> int:
        """Read an unsigned integer of any supported width, including 8."""
        if width == WIDE_WIDTH:
            return await self.read_wide_uint()
        return await self.read_fixed_uint(width)

    async def read_flexible_count(self) -> int:
        """Read a 1-byte count, or 0xFF followed by a u32 count."""
        first = (await self.cursor.read(1))[0]
        if first != FLEXIBLE_COUNT_MARKER:
            self.observer.decoded(str(first))
            return first
        return await self.read_fixed_uint(4)

    async def read_short_count(self) -> int:
        """Read a 1-byte count where the flexible marker is not allowed."""
        value = await self.read_fixed_uint(1)
        if value == FLEXIBLE_COUNT_MARKER:
            raise self._error("Unexpected flexible length 0xff")
        return value

    # === BOOLEANS, STRINGS, DATES ===

    async def read_boolean(self) -> bool:
        value = (await self.cursor.read(1))[0]
        if value not in (0, 1):
            raise self._error(f"Unexpected boolean value {value}")
        result = value == 1
        self.observer.decoded(str(result).lower())
        return result

    async def read_string(self) -> str:
        """Read a flexible-count prefixed UTF-8 string.

        Raises:
            StructuralError: if the bytes are not UTF-8 or contain characters
                outside the allowed set.
        """
        with self.label("str-length"):
            length = await self.read_flexible_count()
        with self.label("str"):
            raw = await self.cursor.read(length)

        try:
            value = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self._error(f"Invalid UTF-8 in string 0x{raw.hex()}") from e

        escaped = escape_text(value)
        self.observer.decoded(escaped)

        if self.check_strings and BAD_STRING_CHARACTERS.search(value):
            self.observer.decoded("Invalid name")
            raise self._error(f"Invalid name {escaped}")

        return value

    async def read_date(self, version: Version) -> datetime:
        """Read the save timestamp, whose encoding depends on `version`."""
        if version <= LAST_FOUR_BYTE_DATE_VERSION:
            seconds = await self.read_fixed_uint(4)
        else:
            seconds = await self.read_wide_uint()
            if seconds * 1000 > MAX_SAFE_TIMESTAMP_MS:
                raise self._error(f"Timestamp {seconds * 1000} is too large")

        try:
            date = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise self._error(f"Timestamp {seconds} is out of range") from e

        self.observer.decoded(date.isoformat())
        return date

    # === SENTINELS ===

    async def expect(self, expected: bytes | Sequence[int] | int, message: str) -> None:
        """Read len(expected) bytes and fail unless they match exactly."""
        if isinstance(expected, int):
            expected = bytes([expected])
        expected = bytes(expected)

        with self.label(message):
            actual = await self.cursor.read(len(expected))
            if actual != expected:
                raise self._error(
                    f"{message}. Expected 0x{expected.hex()}, got 0x{actual.hex()}"
                )
            self.observer.decoded(f"0x{expected.hex()} ok")

    # === COMPOSITES ===

    async def read_array(
        self, length_width: int, element_reader: ElementReader[T]
    ) -> List[T]:
        """Read a fixed-width length, then that many elements in order.

        A 1-byte length of 0xFF is reserved and rejected.
        """
        length = await self.read_fixed_uint(length_width)
        if length_width == 1 and length == FLEXIBLE_COUNT_MARKER:
            raise self._error("Unexpected length 0xff for Array")
        return await self._read_elements(length, element_reader)

    async def read_counted_array(self, element_reader: ElementReader[T]) -> List[T]:
        """Read a flexible-count length, then that many elements in order."""
        length = await self.read_flexible_count()
        return await self._read_elements(length, element_reader)

    async def _read_elements(
        self, length: int, element_reader: ElementReader[T]
    ) -> List[T]:
        elements: List[T] = []
        for index in range(length):
            elements.append(await element_reader(index))
        return elements

    async def read_mapped_number(self, width: int, choices: Sequence[T]) -> T:
        """Read an index of `width` bytes and return that entry of `choices`."""
        index = await self.read_uint(width)
        if index >= len(choices):
            raise self._error(
                f"Index {index} out of range for array of length {len(choices)}"
            )
        return choices[index]
