"""
Heuristic search for length-prefixed strings in raw bytes.

Useful on opaque regions such as blueprint payloads: the result splits the
buffer into chunks, each either a plausible string (flexible-count length,
valid UTF-8, allowed characters) or an unknown gap.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..decoder.primitives import BAD_STRING_CHARACTERS, FLEXIBLE_COUNT_MARKER


@dataclass(frozen=True)
class StringSpan:
    """A chunk of the scanned buffer.

    `data` includes the length prefix for strings. `text` is None for
    chunks that are not strings.
    """
    start: int
    data: bytes
    text: Optional[str] = None


def find_strings(
    buffer: bytes,
    skip_over_found: bool = True,
    shortest: int = 3,
    longest: int = 2000,
) -> List[StringSpan]:
    """Split `buffer` into string and non-string spans.

    Args:
        buffer: Bytes to scan
        skip_over_found: Continue scanning after a found string instead of
            inside it
        shortest: Minimum string length in bytes
        longest: Maximum string length in bytes

    Returns:
        Spans in buffer order
    """
    results: List[StringSpan] = []
    last_unknown = 0

    def push_unknown(end: int) -> None:
        nonlocal last_unknown
        if end > last_unknown:
            results.append(StringSpan(last_unknown, buffer[last_unknown:end]))
            last_unknown = end

    location = 0
    while location < len(buffer):
        length = buffer[location]
        offset = 1
        if length == FLEXIBLE_COUNT_MARKER:
            if location + 5 > len(buffer):
                location += 1
                continue
            length = int.from_bytes(buffer[location + 1:location + 5], "little")
            offset = 5
            # A length below 255 would have used the 1-byte form
            if length < FLEXIBLE_COUNT_MARKER:
                location += 1
                continue

        end = location + offset + length
        if length < shortest or length > longest or end > len(buffer):
            location += 1
            continue

        try:
            text = buffer[location + offset:end].decode("utf-8")
        except UnicodeDecodeError:
            location += 1
            continue
        if BAD_STRING_CHARACTERS.search(text):
            location += 1
            continue

        # A string nested in an earlier, overlapping one stays part of it
        if location < last_unknown:
            location += 1
            continue

        push_unknown(location)
        results.append(StringSpan(location, buffer[location:end], text))
        last_unknown = end

        next_byte = buffer[end] if end < len(buffer) else 0
        if skip_over_found or next_byte < 10:
            location = end
        else:
            location += 1

    push_unknown(len(buffer))
    return results
