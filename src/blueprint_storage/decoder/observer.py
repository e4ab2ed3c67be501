"""
Observer hooks for decode tracing.

Observers receive every byte range the cursor hands out, label scopes pushed
by the decoders and the textual form of decoded values. They are purely
diagnostic: nothing they do may change what is decoded.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class DecodeObserver:
    """No-op observer. Subclass and override the hooks you need."""

    def peek(self) -> None:
        """The next read is a lookahead and will be pushed back."""

    def push_label(self, label: str) -> None:
        """Enter a named scope."""

    def pop_label(self, label: str) -> None:
        """Leave the named scope entered by the matching push_label."""

    def read(self, data: bytes, position: int) -> None:
        """Bytes were consumed starting at the given stream offset."""

    def decoded(self, value: str) -> None:
        """The last read was interpreted as the given value."""


class GuardedObserver(DecodeObserver):
    """Wraps an observer so that its failures cannot affect the decode.

    The first exception raised by the wrapped observer is logged and the
    observer is switched off for the rest of the session.
    """

    def __init__(self, inner: Optional[DecodeObserver]):
        self.inner = inner

    @property
    def active(self) -> bool:
        return self.inner is not None

    def _call(self, hook: str, *args: object) -> None:
        if self.inner is None:
            return
        try:
            getattr(self.inner, hook)(*args)
        except Exception:
            logger.exception(
                f"Observer {self.inner.__class__.__name__} failed in {hook}(), disabling it"
            )
            self.inner = None

    def peek(self) -> None:
        self._call("peek")

    def push_label(self, label: str) -> None:
        self._call("push_label", label)

    def pop_label(self, label: str) -> None:
        self._call("pop_label", label)

    def read(self, data: bytes, position: int) -> None:
        self._call("read", data, position)

    def decoded(self, value: str) -> None:
        self._call("decoded", value)
