"""Error taxonomy for tidiness verification."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tidy_check.verify.verifier import VerificationResult


class TidyCheckError(Exception):
    """Base class for deterministic verification failures."""

    code = "TIDY_CHECK_FAILED"


class MissingDescriptorError(TidyCheckError):
    """Raised when the mandatory module descriptor does not exist."""

    code = "MISSING_DESCRIPTOR"

    def __init__(self, path: Path) -> None:
        super().__init__(f"module descriptor {str(path)!r} does not exist")
        self.path = path


class DirtyWorkingTreeError(TidyCheckError):
    """Raised when a clean working tree is required but local changes exist."""

    code = "DIRTY_WORKING_TREE"

    def __init__(self, target: Path, entries: tuple[str, ...]) -> None:
        super().__init__(f"working tree at {str(target)!r} has uncommitted changes")
        self.target = target
        self.entries = entries


class WorktreeStatusError(TidyCheckError):
    """Raised when the working tree status cannot be determined."""

    code = "WORKTREE_STATUS_FAILED"

    def __init__(self, target: Path, message: str) -> None:
        super().__init__(f"reading working tree status at {str(target)!r}: {message}")
        self.target = target
        self.message = message


class NormalizerInvocationError(TidyCheckError):
    """Raised when the normalization command could not start or complete."""

    code = "INVOCATION_FAILED"

    def __init__(self, command: tuple[str, ...], cause: str) -> None:
        super().__init__(f"running {' '.join(command)!r}: {cause}")
        self.command = command
        self.cause = cause


class NormalizerToolError(TidyCheckError):
    """Raised when the normalization command exits with a non-zero status."""

    code = "TOOL_FAILED"

    def __init__(self, command: tuple[str, ...], exit_code: int, output: str) -> None:
        message = f"{' '.join(command)!r} exited with status {exit_code}"
        if output.strip():
            message = f"{message}:\n{output.rstrip()}"
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.output = output


class RestoreFailedError(TidyCheckError):
    """Raised when tracked files could not be put back to their original bytes.

    ``prior`` holds the exception that was already propagating when the restore ran,
    ``result`` the verification result that had been determined before the restore.
    """

    code = "RESTORE_FAILED"

    def __init__(
        self,
        failures: tuple[tuple[Path, OSError], ...],
        prior: BaseException | None = None,
        result: VerificationResult | None = None,
    ) -> None:
        details = "; ".join(f"{str(path)!r}: {error}" for path, error in failures)
        message = f"restoring tracked files: {details}"
        if prior is not None:
            message = f"{message} (while handling: {prior})"
        super().__init__(message)
        self.failures = failures
        self.prior = prior
        self.result = result


class DiffRenderError(TidyCheckError):
    """Raised when a diff cannot be rendered; callers treat it as non-fatal."""

    code = "DIFF_RENDER_FAILED"

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"rendering diff for {label!r}: {reason}")
        self.label = label
        self.reason = reason


class TargetCheckError(TidyCheckError):
    """Annotates the first hard error of a run with the failing target."""

    def __init__(self, target: str, cause: Exception) -> None:
        super().__init__(f"checking module {target!r}: {cause}")
        self.target = target
        self.cause = cause
        self.code = getattr(cause, "code", "IO_ERROR")
