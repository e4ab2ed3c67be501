"""
Serialization of decoded sessions with orjson.

Dataclasses, enums and timezone-aware datetimes are handled by orjson itself;
opaque blueprint payloads are written as base64 text.
"""

import base64
from typing import Any

import orjson

from .models import DecodedSession


def _default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def to_json(session: DecodedSession, indent: bool = False) -> bytes:
    """Serialize a session to UTF-8 JSON bytes."""
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(session, default=_default, option=option)


def to_dict(session: DecodedSession) -> dict[str, Any]:
    """Return the session as plain JSON-compatible Python objects."""
    return orjson.loads(to_json(session))
