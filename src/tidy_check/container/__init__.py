"""Container action environment support."""

from .paths import (
    CONTAINER_WORKSPACE,
    mount_source,
    remap_container_paths,
    running_in_action_container,
    split_arguments,
)

__all__ = [
    "CONTAINER_WORKSPACE",
    "mount_source",
    "remap_container_paths",
    "running_in_action_container",
    "split_arguments",
]
