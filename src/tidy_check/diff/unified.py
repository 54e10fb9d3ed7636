"""Unified diff rendering for tracked file snapshots."""

from __future__ import annotations

from collections.abc import Sequence

from tidy_check.diff.myers import DELETE, EQUAL, INSERT, Edit, shortest_edit_script
from tidy_check.errors import DiffRenderError

DEFAULT_CONTEXT_LINES = 3
NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def render_unified(
    label: str,
    before: bytes,
    after: bytes,
    context: int = DEFAULT_CONTEXT_LINES,
) -> str:
    """Render a unified diff between two byte snapshots of ``label``.

    Identical inputs render as an empty string. Both inputs must be valid UTF-8.
    """
    if before == after:
        return ""
    old_lines = _decode_lines(label, before)
    new_lines = _decode_lines(label, after)
    edits = shortest_edit_script(old_lines, new_lines)

    output = [f"--- a/{label}\n", f"+++ b/{label}\n"]
    for start, end in _hunk_bounds(edits, context):
        output.extend(_render_hunk(edits[start:end], old_lines, new_lines))
    return "".join(output)


def _decode_lines(label: str, content: bytes) -> list[str]:
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as error:
        raise DiffRenderError(label=label, reason=f"content is not UTF-8 ({error})") from error
    parts = text.split("\n")
    lines = [f"{part}\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _hunk_bounds(edits: Sequence[Edit], context: int) -> list[tuple[int, int]]:
    """Group changed edits into hunks separated by more than ``2 * context`` equal lines."""
    changes = [index for index, edit in enumerate(edits) if edit.op != EQUAL]
    if not changes:
        return []
    groups: list[list[int]] = [[changes[0], changes[0]]]
    for index in changes[1:]:
        if index - groups[-1][1] - 1 <= 2 * context:
            groups[-1][1] = index
        else:
            groups.append([index, index])
    return [
        (max(0, first - context), min(len(edits), last + context + 1)) for first, last in groups
    ]


def _format_range(start: int, length: int) -> str:
    beginning = start + 1
    if length == 1:
        return f"{beginning}"
    if length == 0:
        beginning -= 1
    return f"{beginning},{length}"


def _render_hunk(
    hunk: Sequence[Edit], old_lines: Sequence[str], new_lines: Sequence[str]
) -> list[str]:
    old_length = sum(1 for edit in hunk if edit.op != INSERT)
    new_length = sum(1 for edit in hunk if edit.op != DELETE)
    first = hunk[0]
    header = (
        f"@@ -{_format_range(first.old_index, old_length)} "
        f"+{_format_range(first.new_index, new_length)} @@\n"
    )
    lines = [header]
    for edit in hunk:
        if edit.op == EQUAL:
            lines.append(_diff_line(" ", old_lines[edit.old_index]))
        elif edit.op == DELETE:
            lines.append(_diff_line("-", old_lines[edit.old_index]))
        else:
            lines.append(_diff_line("+", new_lines[edit.new_index]))
    return lines


def _diff_line(prefix: str, line: str) -> str:
    if line.endswith("\n"):
        return f"{prefix}{line}"
    return f"{prefix}{line}\n{NO_NEWLINE_MARKER}"
