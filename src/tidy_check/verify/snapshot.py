"""Byte-exact capture and restore of the tracked manifest files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from tidy_check.errors import MissingDescriptorError, RestoreFailedError
from tidy_check.logging import NULL_DEBUG_LOG, DebugLog

if TYPE_CHECKING:
    from tidy_check.verify.verifier import VerificationResult


class Presence(Enum):
    """Three-valued presence marker for one tracked file."""

    PRESENT = "present"
    EMPTY = "empty"
    ABSENT = "absent"


@dataclass(slots=True, frozen=True)
class TrackedFilePair:
    """Descriptor and optional lock file observed during one transaction."""

    descriptor: Path
    lock: Path | None

    @classmethod
    def in_directory(
        cls, target: Path, descriptor_name: str, lock_name: str | None
    ) -> TrackedFilePair:
        """Resolve both file names against a single target directory."""
        return cls(
            descriptor=target / descriptor_name,
            lock=target / lock_name if lock_name else None,
        )

    def paths(self) -> tuple[Path, ...]:
        if self.lock is None:
            return (self.descriptor,)
        return (self.descriptor, self.lock)


@dataclass(slots=True, frozen=True)
class FileState:
    """Bytes and presence of one file at capture time."""

    path: Path
    presence: Presence
    content: bytes


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable capture of a tracked file pair.

    Equality compares presence and bytes, so an absent file never equals an empty one.
    """

    descriptor: FileState
    lock: FileState | None

    def states(self) -> tuple[FileState, ...]:
        if self.lock is None:
            return (self.descriptor,)
        return (self.descriptor, self.lock)

    def changed_paths(self, other: Snapshot) -> tuple[Path, ...]:
        """Return tracked paths whose state differs between two snapshots."""
        return tuple(
            mine.path
            for mine, theirs in zip(self.states(), other.states(), strict=True)
            if mine != theirs
        )


def read_state(path: Path) -> FileState:
    """Read one file, mapping a missing file to ``Presence.ABSENT``."""
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        return FileState(path=path, presence=Presence.ABSENT, content=b"")
    presence = Presence.PRESENT if content else Presence.EMPTY
    return FileState(path=path, presence=presence, content=content)


def capture(pair: TrackedFilePair, require_descriptor: bool = True) -> Snapshot:
    """Capture both tracked files.

    A missing lock file is recorded as absent. A missing descriptor raises
    ``MissingDescriptorError`` unless ``require_descriptor`` is false.
    """
    descriptor = read_state(pair.descriptor)
    if require_descriptor and descriptor.presence is Presence.ABSENT:
        raise MissingDescriptorError(pair.descriptor)
    lock = read_state(pair.lock) if pair.lock is not None else None
    return Snapshot(descriptor=descriptor, lock=lock)


def restore(original: Snapshot, log: DebugLog = NULL_DEBUG_LOG) -> None:
    """Put every tracked file back to its captured state.

    Every file is attempted; failures are collected and raised together.
    """
    failures: list[tuple[Path, OSError]] = []
    for state in original.states():
        try:
            _restore_state(state, log)
        except OSError as error:
            log.log(f"error: restoring {str(state.path)!r}: {error}")
            failures.append((state.path, error))
    if failures:
        raise RestoreFailedError(failures=tuple(failures))


def _restore_state(state: FileState, log: DebugLog) -> None:
    current = read_state(state.path)
    if current == state:
        return
    if state.presence is Presence.ABSENT:
        log.log(f"removing {str(state.path)!r} created during normalization")
        state.path.unlink(missing_ok=True)
        return
    log.log(f"writing back original bytes of {str(state.path)!r}")
    state.path.write_bytes(state.content)


class RollbackGuard:
    """Context manager that restores a snapshot on every exit path.

    Enter it as soon as the first snapshot exists. A restore failure raised from
    ``__exit__`` carries the in-flight exception as ``prior`` and any result recorded
    on the guard, so neither is lost.
    """

    def __init__(self, original: Snapshot, log: DebugLog = NULL_DEBUG_LOG) -> None:
        self._original = original
        self._log = log
        self.result: VerificationResult | None = None

    def __enter__(self) -> RollbackGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        self._log.log("restoring tracked files")
        try:
            restore(self._original, self._log)
        except RestoreFailedError as error:
            raise RestoreFailedError(
                failures=error.failures,
                prior=exc_value,
                result=self.result,
            ) from (exc_value if exc_value is not None else error.failures[0][1])
        self._log.log("tracked files restored")
        return False
