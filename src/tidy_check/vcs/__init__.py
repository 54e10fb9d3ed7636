"""Version control queries."""

from .status import WorktreeStatus, ensure_clean_worktree, git_worktree_status

__all__ = ["WorktreeStatus", "ensure_clean_worktree", "git_worktree_status"]
