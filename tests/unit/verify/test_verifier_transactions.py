from __future__ import annotations

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from tidy_check.errors import (
    DirtyWorkingTreeError,
    MissingDescriptorError,
    NormalizerInvocationError,
    NormalizerToolError,
    RestoreFailedError,
)
from tidy_check.vcs import WorktreeStatus
from tidy_check.verify import Deadline, ExternalNormalizer, TidinessVerifier

Factory = Callable[[str], tuple[str, ...]]

UNTIDY_GO_MOD = (
    "module example.com/untidy\n"
    "\n"
    "go 1.21\n"
    "\n"
    "require example.com/unused v1.0.0 // unused\n"
)


def _verifier(command: tuple[str, ...], **kwargs: object) -> TidinessVerifier:
    return TidinessVerifier(
        normalizer=ExternalNormalizer(command),
        descriptor_name="go.mod",
        lock_name="go.sum",
        **kwargs,
    )


def _read_tracked(module: Path) -> dict[str, bytes | None]:
    return {
        name: (module / name).read_bytes() if (module / name).exists() else None
        for name in ("go.mod", "go.sum")
    }


def test_unused_dependency_is_reported_and_rolled_back(
    make_module: Callable[..., Path], remove_unused_command: tuple[str, ...]
) -> None:
    module = make_module("untidy", go_mod=UNTIDY_GO_MOD)
    before = _read_tracked(module)

    result = _verifier(remove_unused_command).verify(str(module), Deadline(60), want_diff=True)

    assert result.needs_normalization is True
    assert result.changed_files == ((module / "go.mod").as_posix(),)
    assert result.diff is not None
    assert f"--- a/{(module / 'go.mod').as_posix()}\n" in result.diff
    assert "\n-require example.com/unused v1.0.0 // unused\n" in result.diff
    assert _read_tracked(module) == before
    assert "// unused" in (module / "go.mod").read_text(encoding="utf-8")


def test_tidy_module_is_idempotent(
    make_module: Callable[..., Path], remove_unused_command: tuple[str, ...]
) -> None:
    module = make_module("tidy")
    before = _read_tracked(module)
    verifier = _verifier(remove_unused_command)

    first = verifier.verify(str(module), Deadline(60), want_diff=True)
    assert _read_tracked(module) == before
    second = verifier.verify(str(module), Deadline(60), want_diff=True)

    assert first.needs_normalization is False
    assert second.needs_normalization is False
    assert first.diff is None
    assert _read_tracked(module) == before


def test_missing_lock_stays_missing_when_nothing_changes(
    make_module: Callable[..., Path], noop_command: tuple[str, ...]
) -> None:
    module = make_module("nolock", go_sum=None)

    result = _verifier(noop_command).verify(str(module), Deadline(60), want_diff=True)

    assert result.needs_normalization is False
    assert not (module / "go.sum").exists()


def test_lock_created_by_normalizer_is_removed(
    make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("createlock", go_sum=None)
    command = make_normalizer('Path("go.sum").write_text("x v1 h1:a=\\n", encoding="utf-8")\n')

    result = _verifier(command).verify(str(module), Deadline(60), want_diff=True)

    assert result.needs_normalization is True
    assert result.changed_files == ((module / "go.sum").as_posix(),)
    assert result.diff is not None
    assert "+x v1 h1:a=\n" in result.diff
    assert not (module / "go.sum").exists()


def test_diff_is_skipped_when_not_requested(
    make_module: Callable[..., Path], remove_unused_command: tuple[str, ...]
) -> None:
    module = make_module("nodiff", go_mod=UNTIDY_GO_MOD)

    result = _verifier(remove_unused_command).verify(str(module), Deadline(60), want_diff=False)

    assert result.needs_normalization is True
    assert result.diff is None


def test_tool_failure_restores_partial_writes(
    make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("toolfail")
    before = _read_tracked(module)
    command = make_normalizer(
        """
        Path("go.mod").write_text("half written", encoding="utf-8")
        Path("go.sum").unlink()
        print("go: updates to go.mod needed", file=sys.stderr)
        sys.exit(1)
        """
    )

    with pytest.raises(NormalizerToolError) as error:
        _verifier(command).verify(str(module), Deadline(60), want_diff=True)

    assert error.value.exit_code == 1
    assert "updates to go.mod needed" in error.value.output
    assert error.value.code == "TOOL_FAILED"
    assert _read_tracked(module) == before


def test_missing_binary_is_invocation_error(make_module: Callable[..., Path]) -> None:
    module = make_module("nobinary")
    before = _read_tracked(module)

    with pytest.raises(NormalizerInvocationError) as error:
        _verifier(("no-such-normalizer-binary",)).verify(
            str(module), Deadline(60), want_diff=False
        )

    assert error.value.code == "INVOCATION_FAILED"
    assert _read_tracked(module) == before


def test_deadline_expiry_still_restores(
    make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("slow")
    before = _read_tracked(module)
    command = make_normalizer(
        """
        Path("go.mod").write_text("rewritten\\n", encoding="utf-8")
        Path("go.sum").write_text("", encoding="utf-8")
        time.sleep(30)
        """
    )

    with pytest.raises(NormalizerInvocationError, match="deadline"):
        _verifier(command).verify(str(module), Deadline(2), want_diff=False)

    assert _read_tracked(module) == before


def test_missing_descriptor_never_runs_normalizer(
    tmp_path: Path, make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("nodescriptor", go_mod=None)
    marker = tmp_path / "normalizer-ran"
    command = make_normalizer(f'Path({str(marker)!r}).write_text("x", encoding="utf-8")\n')

    with pytest.raises(MissingDescriptorError):
        _verifier(command).verify(str(module), Deadline(60), want_diff=False)

    assert not marker.exists()


def test_diff_render_failure_is_not_fatal(
    make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("binary")
    (module / "go.mod").write_bytes(b"module \xff\xfe\n")
    before = _read_tracked(module)
    command = make_normalizer(
        """
        with open("go.mod", "ab") as handle:
            handle.write(b"go 1.21\\n")
        """
    )

    result = _verifier(command).verify(str(module), Deadline(60), want_diff=True)

    assert result.needs_normalization is True
    assert result.diff is None
    assert _read_tracked(module) == before


def test_dirty_worktree_refuses_to_run(
    tmp_path: Path, make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("dirty")
    marker = tmp_path / "normalizer-ran"
    command = make_normalizer(f'Path({str(marker)!r}).write_text("x", encoding="utf-8")\n')
    verifier = _verifier(
        command,
        require_clean_worktree=True,
        worktree_status=lambda target: WorktreeStatus(entries=(" M go.mod",)),
    )

    with pytest.raises(DirtyWorkingTreeError) as error:
        verifier.verify(str(module), Deadline(60), want_diff=False)

    assert error.value.entries == (" M go.mod",)
    assert not marker.exists()


def test_clean_worktree_precondition_allows_check(
    make_module: Callable[..., Path], noop_command: tuple[str, ...]
) -> None:
    module = make_module("clean")
    seen: list[Path] = []

    def status(target: Path) -> WorktreeStatus:
        seen.append(target)
        return WorktreeStatus(entries=())

    verifier = _verifier(noop_command, require_clean_worktree=True, worktree_status=status)
    result = verifier.verify(str(module), Deadline(60), want_diff=False)

    assert result.needs_normalization is False
    assert seen == [module]


def test_unrestorable_file_surfaces_restore_failure(
    make_module: Callable[..., Path], make_normalizer: Factory
) -> None:
    module = make_module("unrestorable")
    command = make_normalizer(
        """
        Path("go.mod").write_text("changed\\n", encoding="utf-8")
        Path("go.sum").unlink()
        Path("go.sum").mkdir()
        """
    )

    with pytest.raises(RestoreFailedError) as error:
        _verifier(command).verify(str(module), Deadline(60), want_diff=False)

    assert error.value.code == "RESTORE_FAILED"
    assert isinstance(error.value.prior, OSError)
    assert (module / "go.mod").read_text(encoding="utf-8").startswith("module example.com/tidy")
    shutil.rmtree(module / "go.sum")
