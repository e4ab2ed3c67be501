"""
Annotated decode traces.

TraceWriter is a decode observer that writes every byte range consumed by
the decoder as a hex line tagged with the active label stack, followed by the
values decoded from it. Traces are the main tool for reverse engineering
fields whose meaning is still unknown.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO, Union

from ..decoder.errors import ObserverError
from ..decoder.observer import DecodeObserver

logger = logging.getLogger(__name__)

HEX_COLUMN_WIDTH = 80


class TraceWriter(DecodeObserver):
    """Writes an annotated trace of a decode run to a text file."""

    def __init__(self, target: Union[str, Path, TextIO]):
        if isinstance(target, (str, Path)):
            path = Path(target)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._output: TextIO = path.open("w", encoding="utf-8")
            self._owns_output = True
        else:
            self._output = target
            self._owns_output = False

        self.labels: List[str] = []
        self._peeking = False
        self._needs_newline = False
        self.start_time = datetime.now()
        self._output.write(f"Start time: {self.start_time.isoformat(sep=' ')}\n")

    def peek(self) -> None:
        self._peeking = True

    def push_label(self, label: str) -> None:
        self.labels.append(label)

    def pop_label(self, label: str) -> None:
        if not self.labels or self.labels[-1] != label:
            current = self.labels[-1] if self.labels else None
            raise ObserverError(f"Label mismatch: closing {label!r}, innermost is {current!r}")
        self.labels.pop()

    def read(self, data: bytes, position: int) -> None:
        if self._peeking:
            self._peeking = False
            return

        if self._needs_newline:
            self._output.write("\n")
        else:
            self._needs_newline = True

        self._output.write(
            f"{position:>4} {data.hex():<{HEX_COLUMN_WIDTH}} {' '.join(self.labels)}"
        )

    def decoded(self, value: str) -> None:
        self._output.write(f" => {value}")

    def finish(self, remaining: bytes = b"", original_size: Optional[int] = None) -> None:
        """Append the undecoded tail and timings, then close owned files."""
        out = self._output
        out.write("\n\n")
        if original_size is not None:
            out.write(f"Original file size: {original_size}\n")
        out.write(f"Remaining bytes: {len(remaining)}\n")
        if remaining:
            out.write("\n")
            hex_text = remaining.hex()
            lines = [
                hex_text[i:i + HEX_COLUMN_WIDTH]
                for i in range(0, len(hex_text), HEX_COLUMN_WIDTH)
            ]
            out.write("\n".join(lines))
        out.write("\n")

        end_time = datetime.now()
        elapsed_ms = int((end_time - self.start_time).total_seconds() * 1000)
        out.write(f"End time: {end_time.isoformat(sep=' ')}\n")
        out.write(f"Time taken: {elapsed_ms}ms\n")

        if self._owns_output:
            out.close()
        else:
            out.flush()
        logger.debug(f"Trace finished after {elapsed_ms}ms")
