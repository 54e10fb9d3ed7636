from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from itertools import count
from pathlib import Path

import pytest

REMOVE_UNUSED_BODY = """
mod = Path("go.mod")
lines = mod.read_text(encoding="utf-8").splitlines(keepends=True)
kept = [line for line in lines if "// unused" not in line]
if kept != lines:
    mod.write_text("".join(kept), encoding="utf-8")
"""

NOOP_BODY = """
print("nothing to do")
"""

TIDY_GO_MOD = "module example.com/tidy\n\ngo 1.21\n"
UNTIDY_GO_MOD = (
    "module example.com/untidy\n"
    "\n"
    "go 1.21\n"
    "\n"
    "require example.com/unused v1.0.0 // unused\n"
)
GO_SUM = "example.com/dep v1.0.0 h1:abc=\nexample.com/dep v1.0.0/go.mod h1:def=\n"


@pytest.fixture
def make_normalizer(tmp_path: Path) -> Callable[[str], tuple[str, ...]]:
    """Write a Python script acting as the normalizer and return its command."""
    scripts_dir = tmp_path / "_normalizers"
    scripts_dir.mkdir()
    sequence = count()

    def factory(body: str) -> tuple[str, ...]:
        script = scripts_dir / f"normalizer_{next(sequence)}.py"
        header = "import os\nimport sys\nimport time\nfrom pathlib import Path\n"
        script.write_text(header + textwrap.dedent(body), encoding="utf-8")
        return (sys.executable, str(script))

    return factory


@pytest.fixture
def make_module(tmp_path: Path) -> Callable[..., Path]:
    """Create a module directory with the given descriptor and optional lock content."""

    def factory(name: str, go_mod: str | None = TIDY_GO_MOD, go_sum: str | None = GO_SUM) -> Path:
        module_dir = tmp_path / name
        module_dir.mkdir(parents=True)
        if go_mod is not None:
            (module_dir / "go.mod").write_text(go_mod, encoding="utf-8")
        if go_sum is not None:
            (module_dir / "go.sum").write_text(go_sum, encoding="utf-8")
        return module_dir

    return factory


@pytest.fixture
def remove_unused_command(make_normalizer: Callable[[str], tuple[str, ...]]) -> tuple[str, ...]:
    return make_normalizer(REMOVE_UNUSED_BODY)


@pytest.fixture
def noop_command(make_normalizer: Callable[[str], tuple[str, ...]]) -> tuple[str, ...]:
    return make_normalizer(NOOP_BODY)
