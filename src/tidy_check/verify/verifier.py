"""Check-and-rollback transaction for a single module directory."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from tidy_check.diff import render_unified
from tidy_check.errors import DiffRenderError, NormalizerInvocationError, NormalizerToolError
from tidy_check.logging import NULL_DEBUG_LOG, DebugLog
from tidy_check.vcs import WorktreeStatus, ensure_clean_worktree, git_worktree_status
from tidy_check.verify.normalizer import (
    Deadline,
    ExternalNormalizer,
    InvocationFailure,
    ToolFailure,
)
from tidy_check.verify.snapshot import RollbackGuard, Snapshot, TrackedFilePair, capture


@dataclass(slots=True, frozen=True)
class VerificationResult:
    """Outcome of verifying one target directory."""

    target: str
    needs_normalization: bool
    changed_files: tuple[str, ...] = ()
    diff: str | None = None


class TidinessVerifier:
    """Run the normalizer against a target and report whether it changed anything.

    Tracked files are restored to their captured bytes before ``verify`` returns or
    raises, whatever the outcome.
    """

    def __init__(
        self,
        normalizer: ExternalNormalizer,
        descriptor_name: str,
        lock_name: str | None,
        log: DebugLog = NULL_DEBUG_LOG,
        require_clean_worktree: bool = False,
        worktree_status: Callable[[Path], WorktreeStatus] = git_worktree_status,
    ) -> None:
        self._normalizer = normalizer
        self._descriptor_name = descriptor_name
        self._lock_name = lock_name
        self._log = log
        self._require_clean_worktree = require_clean_worktree
        self._worktree_status = worktree_status

    def verify(self, target: str, deadline: Deadline, want_diff: bool) -> VerificationResult:
        target_dir = Path(target)
        if self._require_clean_worktree:
            self._log.log("checking if working tree is clean")
            ensure_clean_worktree(target_dir, self._worktree_status(target_dir))

        pair = TrackedFilePair.in_directory(target_dir, self._descriptor_name, self._lock_name)
        self._log.log(f"reading {', '.join(repr(str(path)) for path in pair.paths())}")
        before = capture(pair)

        with RollbackGuard(before, self._log) as guard:
            outcome = self._normalizer.run(target_dir, deadline)
            if isinstance(outcome, InvocationFailure):
                raise NormalizerInvocationError(self._normalizer.command, outcome.cause)
            if isinstance(outcome, ToolFailure):
                raise NormalizerToolError(
                    self._normalizer.command, outcome.exit_code, outcome.output
                )

            self._log.log("checking if tracked files have been modified")
            after = capture(pair, require_descriptor=False)
            changed = before.changed_paths(after)
            diff = None
            if changed and want_diff:
                diff = self._render_diffs(before, after)
            result = VerificationResult(
                target=target,
                needs_normalization=bool(changed),
                changed_files=tuple(path.as_posix() for path in changed),
                diff=diff,
            )
            guard.result = result
        return result

    def _render_diffs(self, before: Snapshot, after: Snapshot) -> str | None:
        self._log.log("generating diffs")
        rendered: list[str] = []
        for old, new in zip(before.states(), after.states(), strict=True):
            if old == new:
                continue
            try:
                rendered.append(render_unified(old.path.as_posix(), old.content, new.content))
            except DiffRenderError as error:
                self._log.log(f"error: {error}; omitting diff")
                return None
        return "".join(rendered)
