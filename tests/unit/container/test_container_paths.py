from __future__ import annotations

from pathlib import Path

import pytest

from tidy_check.container import (
    mount_source,
    remap_container_paths,
    running_in_action_container,
    split_arguments,
)

MOUNTINFO = "\n".join(
    [
        "22 1 8:1 / / rw,relatime - ext4 /dev/sda1 rw",
        "35 22 8:1 /home/runner/work/repo/repo /github/workspace "
        "rw,relatime - ext4 /dev/sda1 rw",
        "36 22 0:5 / /dev rw - tmpfs tmpfs rw",
        "short line",
    ]
)


@pytest.fixture
def mountinfo(tmp_path: Path) -> Path:
    path = tmp_path / "mountinfo"
    path.write_text(MOUNTINFO + "\n", encoding="utf-8")
    return path


def test_action_container_detection() -> None:
    assert running_in_action_container(
        {"GITHUB_ACTIONS": "true", "GITHUB_WORKSPACE": "/github/workspace"}
    )
    assert not running_in_action_container(
        {"GITHUB_ACTIONS": "true", "GITHUB_WORKSPACE": "/home/runner/work/repo/repo"}
    )
    assert not running_in_action_container({})


def test_split_arguments_honors_quotes() -> None:
    assert split_arguments("mod1  mod2\tmod3") == ["mod1", "mod2", "mod3"]
    assert split_arguments('"with space" plain') == ['"with space"', "plain"]
    assert split_arguments("") == []


def test_mount_source_reads_workspace_row(mountinfo: Path) -> None:
    assert mount_source(mountinfo) == "/home/runner/work/repo/repo"
    assert mount_source(mountinfo, mount_point="/not/mounted") is None


def test_remap_rewrites_host_paths_under_mount(mountinfo: Path) -> None:
    remapped = remap_container_paths(
        [
            "/home/runner/work/repo/repo/module1",
            "/home/runner/work/repo/repo",
            "/home/runner/work/repo/repository-other",
            "relative/module",
        ],
        mountinfo_path=mountinfo,
    )

    assert remapped == [
        "/github/workspace/module1",
        "/github/workspace",
        "/home/runner/work/repo/repository-other",
        "relative/module",
    ]


def test_remap_splits_single_argument_string(mountinfo: Path) -> None:
    remapped = remap_container_paths(
        ["/home/runner/work/repo/repo/a /home/runner/work/repo/repo/b/..."],
        mountinfo_path=mountinfo,
    )

    assert remapped == ["/github/workspace/a", "/github/workspace/b/..."]


def test_remap_without_mount_leaves_paths_unchanged(tmp_path: Path) -> None:
    mountinfo = tmp_path / "mountinfo"
    mountinfo.write_text("22 1 8:1 / / rw,relatime - ext4 /dev/sda1 rw\n", encoding="utf-8")

    assert remap_container_paths(["a", "/abs/b"], mountinfo_path=mountinfo) == ["a", "/abs/b"]


def test_missing_mountinfo_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        remap_container_paths(["a"], mountinfo_path=tmp_path / "absent")
