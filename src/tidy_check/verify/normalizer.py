"""External normalization command runner with a shared deadline."""

from __future__ import annotations

import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from tidy_check.logging import NULL_DEBUG_LOG, DebugLog

DEFAULT_MAX_OUTPUT_BYTES = 64 * 1024
TRUNCATION_MARKER = "[... earlier output truncated ...]\n"
READ_CHUNK_BYTES = 64 * 1024


class Deadline:
    """Fixed time budget shared by every target of one run."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._budget = seconds
        self._expires_at = clock() + seconds

    @property
    def budget(self) -> float:
        return self._budget

    def remaining(self) -> float:
        """Return seconds left, never negative."""
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0


@dataclass(slots=True, frozen=True)
class NormalizationSuccess:
    """The command exited with status 0."""

    output: str


@dataclass(slots=True, frozen=True)
class ToolFailure:
    """The command ran and reported failure through a non-zero exit status."""

    exit_code: int
    output: str


@dataclass(slots=True, frozen=True)
class InvocationFailure:
    """The command could not be started or did not run to completion."""

    cause: str


NormalizationOutcome = NormalizationSuccess | ToolFailure | InvocationFailure


class ExternalNormalizer:
    """Run the normalization command inside a target directory.

    The outcome only says whether the command ran; whether it changed anything is
    decided by the caller from file snapshots.
    """

    def __init__(
        self,
        command: Sequence[str],
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        log: DebugLog = NULL_DEBUG_LOG,
    ) -> None:
        if not command:
            raise ValueError("Normalizer command must not be empty.")
        self._command = tuple(command)
        self._max_output_bytes = max_output_bytes
        self._log = log

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    def run(self, target_dir: Path, deadline: Deadline) -> NormalizationOutcome:
        remaining = deadline.remaining()
        if remaining <= 0.0:
            return InvocationFailure(cause=f"deadline of {deadline.budget:g}s exceeded")

        self._log.log(f"running {' '.join(self._command)!r} in {str(target_dir)!r}")
        started = time.perf_counter()
        try:
            process = subprocess.Popen(
                self._command,
                cwd=target_dir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as error:
            return InvocationFailure(cause=f"could not start command: {error}")

        tail = OutputTail(self._max_output_bytes)
        with process:
            reader = threading.Thread(target=tail.drain, args=(process.stdout,), daemon=True)
            reader.start()
            try:
                returncode = process.wait(timeout=remaining)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
                reader.join()
                self._log.log(f"command killed after {time.perf_counter() - started:.2f}s")
                return InvocationFailure(
                    cause=f"deadline of {deadline.budget:g}s exceeded, command was killed"
                )
            reader.join()

        elapsed = time.perf_counter() - started
        output = tail.text()
        self._log.log(f"command exited with status {returncode} after {elapsed:.2f}s")
        if returncode < 0:
            return InvocationFailure(cause=f"command terminated by signal {-returncode}")
        if returncode != 0:
            return ToolFailure(exit_code=returncode, output=output)
        return NormalizationSuccess(output=output)


class OutputTail:
    """Keep only the last ``limit`` bytes of a stream while it is being read."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._buffer = bytearray()
        self._truncated = False

    @property
    def truncated(self) -> bool:
        return self._truncated

    def feed(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)
        overflow = len(self._buffer) - self._limit
        if overflow > 0:
            del self._buffer[:overflow]
            self._truncated = True

    def drain(self, stream: IO[bytes]) -> None:
        """Read ``stream`` to EOF in fixed-size chunks."""
        while chunk := stream.read(READ_CHUNK_BYTES):
            self.feed(chunk)

    def text(self) -> str:
        decoded = bytes(self._buffer).decode("utf-8", errors="replace")
        return TRUNCATION_MARKER + decoded if self._truncated else decoded
