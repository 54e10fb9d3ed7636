"""Translate host paths into paths inside a container action's workspace mount."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from pathlib import Path, PurePosixPath
from typing import Final

from tidy_check.logging import NULL_DEBUG_LOG, DebugLog

MOUNTINFO_PATH: Final = Path("/proc/self/mountinfo")
CONTAINER_WORKSPACE: Final = "/github/workspace"
ARGUMENT_PATTERN: Final[re.Pattern[str]] = re.compile(r'("[^"]*"|[^"\s]+)(\s+|$)')


def running_in_action_container(environ: Mapping[str, str]) -> bool:
    """Return True when running as a container action with the workspace mounted."""
    return (
        environ.get("GITHUB_ACTIONS") == "true"
        and environ.get("GITHUB_WORKSPACE") == CONTAINER_WORKSPACE
    )


def split_arguments(raw: str) -> list[str]:
    """Split a single whitespace-separated argument string, honoring double quotes."""
    return [match.group(0).strip() for match in ARGUMENT_PATTERN.finditer(raw)]


def mount_source(
    mountinfo_path: Path = MOUNTINFO_PATH, mount_point: str = CONTAINER_WORKSPACE
) -> str | None:
    """Return the host-side root mounted at ``mount_point``, if any."""
    with mountinfo_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            fields = line.split()
            if len(fields) < 5:
                continue
            if fields[4] != mount_point:
                continue
            return fields[3]
    return None


def _relative_to_source(path: str, source: str) -> str | None:
    candidate = PurePosixPath(path)
    root = PurePosixPath(source)
    if not candidate.is_relative_to(root):
        return None
    return candidate.relative_to(root).as_posix()


def remap_container_paths(
    paths: Sequence[str],
    mountinfo_path: Path = MOUNTINFO_PATH,
    mount_point: str = CONTAINER_WORKSPACE,
    log: DebugLog = NULL_DEBUG_LOG,
) -> list[str]:
    """Rewrite host-absolute paths under the workspace mount to in-container paths."""
    remapped = list(paths)
    if len(remapped) == 1:
        remapped = split_arguments(remapped[0])

    source = mount_source(mountinfo_path, mount_point)
    if source is None:
        log.log(f"no mount found for {mount_point!r}; paths left unchanged")
        return remapped
    log.log(f"mount source: {source!r}")

    for index, path in enumerate(remapped):
        rest = _relative_to_source(path, source)
        if rest is None:
            continue
        new_path = str(PurePosixPath(mount_point) / rest) if rest != "." else mount_point
        remapped[index] = new_path
        log.log(f"replacing path {path!r} with {new_path!r}")
    return remapped
