"""Git working tree status used by the optional clean-tree precondition."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from tidy_check.errors import DirtyWorkingTreeError, WorktreeStatusError


@dataclass(slots=True, frozen=True)
class WorktreeStatus:
    """Porcelain status entries for the repository containing a directory."""

    entries: tuple[str, ...]

    @property
    def clean(self) -> bool:
        return not self.entries


def _git(target: Path, args: list[str]) -> str:
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=target,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as error:
        raise WorktreeStatusError(target=target, message=str(error)) from error
    if completed.returncode != 0:
        raise WorktreeStatusError(
            target=target,
            message=completed.stderr.strip() or "git command failed",
        )
    return completed.stdout


def git_worktree_status(target: Path) -> WorktreeStatus:
    """Return porcelain status of the whole repository that contains ``target``."""
    output = _git(target, ["status", "--porcelain", "--untracked-files=all"])
    entries = tuple(line for line in output.splitlines() if line.strip())
    return WorktreeStatus(entries=entries)


def ensure_clean_worktree(target: Path, status: WorktreeStatus) -> None:
    """Raise DirtyWorkingTreeError when ``status`` reports local changes."""
    if not status.clean:
        raise DirtyWorkingTreeError(target=target, entries=status.entries)
