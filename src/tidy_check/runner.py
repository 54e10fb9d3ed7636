"""Sequential verification of several module directories."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO

from tidy_check.errors import RestoreFailedError, TargetCheckError, TidyCheckError
from tidy_check.logging import (
    NULL_DEBUG_LOG,
    AuditEvent,
    DebugLog,
    JsonlAuditLogger,
    utc_timestamp,
)
from tidy_check.verify import Deadline, TidinessVerifier, VerificationResult

RECURSIVE_SUFFIX = "/..."


@dataclass(slots=True, frozen=True)
class RunReport:
    """Aggregate outcome of a multi-target run."""

    needs_normalization: bool
    results: tuple[VerificationResult, ...]


def normalize_targets(targets: Sequence[str], log: DebugLog = NULL_DEBUG_LOG) -> list[str]:
    """Default to the current directory and strip trailing ``/...`` wildcards."""
    if not targets:
        return [""]
    normalized: list[str] = []
    for target in targets:
        if target == "...":
            target = ""
        elif target.endswith(RECURSIVE_SUFFIX):
            log.log(f"trimming trailing /... from module path {target!r}")
            target = target.removesuffix(RECURSIVE_SUFFIX) or "/"
        normalized.append(target)
    return normalized


def display_target(target: str) -> str:
    """Render a status-line suffix naming the target, empty for the current directory."""
    if not target:
        return ""
    shown = target
    if not shown.startswith("/") and not shown.startswith("."):
        shown = f"./{shown}"
    return f" in {shown!r}"


class MultiTargetRunner:
    """Verify targets in order under one shared deadline and OR their results."""

    def __init__(
        self,
        verifier: TidinessVerifier,
        timeout_seconds: float,
        want_diff: bool,
        out: TextIO,
        log: DebugLog = NULL_DEBUG_LOG,
        audit_logger: JsonlAuditLogger | None = None,
    ) -> None:
        self._verifier = verifier
        self._timeout_seconds = timeout_seconds
        self._want_diff = want_diff
        self._out = out
        self._log = log
        self._audit_logger = audit_logger

    def run(self, targets: Sequence[str]) -> RunReport:
        deadline = Deadline(self._timeout_seconds)
        results: list[VerificationResult] = []
        for target in normalize_targets(targets, self._log):
            self._log.log(f"checking module {target!r}")
            started = time.perf_counter()
            try:
                result = self._verifier.verify(target, deadline, want_diff=self._want_diff)
            except (TidyCheckError, OSError) as error:
                partial = error.result if isinstance(error, RestoreFailedError) else None
                if partial is not None:
                    self._report(partial)
                self._audit_failure(target, error, partial, time.perf_counter() - started)
                raise TargetCheckError(target, error) from error
            self._audit_success(result, time.perf_counter() - started)
            self._report(result)
            results.append(result)
        return RunReport(
            needs_normalization=any(result.needs_normalization for result in results),
            results=tuple(results),
        )

    def _report(self, result: VerificationResult) -> None:
        if not result.needs_normalization:
            return
        self._out.write(f"module{display_target(result.target)} isn't tidy\n")
        if result.diff:
            self._out.write(result.diff)
        self._out.flush()

    def _audit_success(self, result: VerificationResult, elapsed: float) -> None:
        if self._audit_logger is None:
            return
        self._audit_logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                target=result.target,
                ok=True,
                needs_normalization=result.needs_normalization,
                error_code=None,
                metadata={
                    "changed_files": list(result.changed_files),
                    "elapsed_seconds": round(elapsed, 3),
                },
            )
        )

    def _audit_failure(
        self,
        target: str,
        error: Exception,
        partial: VerificationResult | None,
        elapsed: float,
    ) -> None:
        if self._audit_logger is None:
            return
        self._audit_logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                target=target,
                ok=False,
                needs_normalization=bool(partial is not None and partial.needs_normalization),
                error_code=getattr(error, "code", "IO_ERROR"),
                metadata={
                    "error": str(error),
                    "elapsed_seconds": round(elapsed, 3),
                },
            )
        )
