"""
Reverse-engineering aids: annotated decode traces and string scanning.
"""

from .trace import TraceWriter
from .strings import StringSpan, find_strings

__all__ = [
    "TraceWriter",
    "StringSpan",
    "find_strings",
]
