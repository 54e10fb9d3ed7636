"""Line-based diffing of tracked files."""

from .myers import DELETE, EQUAL, INSERT, Edit, shortest_edit_script
from .unified import DEFAULT_CONTEXT_LINES, render_unified

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "DELETE",
    "EQUAL",
    "Edit",
    "INSERT",
    "render_unified",
    "shortest_edit_script",
]
