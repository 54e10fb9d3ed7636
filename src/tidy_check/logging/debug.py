"""Verbose debug log sinks."""

from __future__ import annotations

from typing import Protocol, TextIO


class DebugLog(Protocol):
    """Sink for human-readable debug lines."""

    def log(self, message: str) -> None: ...


class NullDebugLog:
    """Discard every debug line."""

    def log(self, message: str) -> None:
        return None


class StreamDebugLog:
    """Write ``[DEBUG]``-prefixed lines to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def log(self, message: str) -> None:
        self._stream.write(f"[DEBUG] {message}\n")
        self._stream.flush()


NULL_DEBUG_LOG = NullDebugLog()
