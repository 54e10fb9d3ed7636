"""Myers O(ND) shortest edit script over line sequences, in linear space."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

EQUAL: Final = "equal"
DELETE: Final = "delete"
INSERT: Final = "insert"


@dataclass(slots=True, frozen=True)
class Edit:
    """One step of an edit script.

    ``old_index``/``new_index`` are the positions in each sequence before the step is
    applied; an equal step consumes one line of both, a delete one line of the old
    sequence, an insert one line of the new sequence.
    """

    op: str
    old_index: int
    new_index: int


def shortest_edit_script(old: Sequence[str], new: Sequence[str]) -> list[Edit]:
    """Return a minimal edit script turning ``old`` into ``new``.

    Memory stays proportional to ``len(old) + len(new)``: each range is split at a point
    found by a bidirectional search and both halves are diffed independently.
    """
    edits: list[Edit] = []
    _diff_range(old, new, 0, len(old), 0, len(new), edits)
    return edits


def _diff_range(
    old: Sequence[str],
    new: Sequence[str],
    old_start: int,
    old_end: int,
    new_start: int,
    new_end: int,
    edits: list[Edit],
) -> None:
    prefix_end_old, prefix_end_new = old_start, new_start
    while (
        prefix_end_old < old_end
        and prefix_end_new < new_end
        and old[prefix_end_old] == new[prefix_end_new]
    ):
        edits.append(Edit(op=EQUAL, old_index=prefix_end_old, new_index=prefix_end_new))
        prefix_end_old += 1
        prefix_end_new += 1
    old_start, new_start = prefix_end_old, prefix_end_new

    suffix_length = 0
    while (
        old_end - suffix_length > old_start
        and new_end - suffix_length > new_start
        and old[old_end - suffix_length - 1] == new[new_end - suffix_length - 1]
    ):
        suffix_length += 1
    old_end -= suffix_length
    new_end -= suffix_length

    if old_start == old_end:
        for index in range(new_start, new_end):
            edits.append(Edit(op=INSERT, old_index=old_start, new_index=index))
    elif new_start == new_end:
        for index in range(old_start, old_end):
            edits.append(Edit(op=DELETE, old_index=index, new_index=new_start))
    else:
        split = _split_point(old, new, old_start, old_end, new_start, new_end)
        if split is None:
            # No common line in the range: delete everything, then insert everything.
            for index in range(old_start, old_end):
                edits.append(Edit(op=DELETE, old_index=index, new_index=new_start))
            for index in range(new_start, new_end):
                edits.append(Edit(op=INSERT, old_index=old_end, new_index=index))
        else:
            split_old, split_new = split
            _diff_range(old, new, old_start, split_old, new_start, split_new, edits)
            _diff_range(old, new, split_old, old_end, split_new, new_end, edits)

    for offset in range(suffix_length):
        edits.append(Edit(op=EQUAL, old_index=old_end + offset, new_index=new_end + offset))


def _split_point(
    old: Sequence[str],
    new: Sequence[str],
    old_start: int,
    old_end: int,
    new_start: int,
    new_end: int,
) -> tuple[int, int] | None:
    """Find a point on an optimal path by running the greedy search from both ends.

    Returns absolute indices, or ``None`` when the ranges share no line at all.
    """
    n = old_end - old_start
    m = new_end - new_start
    max_d = (n + m + 1) // 2
    offset = max_d
    size = 2 * max_d
    forward = [-1] * size
    backward = [-1] * size
    forward[offset + 1] = 0
    backward[offset + 1] = 0
    delta = n - m
    front = delta % 2 != 0
    # Diagonals that left the grid are trimmed from either side of the sweep.
    forward_start = forward_end = 0
    backward_start = backward_end = 0

    for d in range(max_d):
        for k in range(-d + forward_start, d + 1 - forward_end, 2):
            index = offset + k
            if k == -d or (k != d and forward[index - 1] < forward[index + 1]):
                x = forward[index + 1]
            else:
                x = forward[index - 1] + 1
            y = x - k
            while x < n and y < m and old[old_start + x] == new[new_start + y]:
                x += 1
                y += 1
            forward[index] = x
            if x > n:
                forward_end += 2
            elif y > m:
                forward_start += 2
            elif front:
                mirror = offset + delta - k
                if 0 <= mirror < size and backward[mirror] != -1:
                    if x >= n - backward[mirror]:
                        return old_start + x, new_start + y

        for k in range(-d + backward_start, d + 1 - backward_end, 2):
            index = offset + k
            if k == -d or (k != d and backward[index - 1] < backward[index + 1]):
                x = backward[index + 1]
            else:
                x = backward[index - 1] + 1
            y = x - k
            while x < n and y < m and old[old_end - x - 1] == new[new_end - y - 1]:
                x += 1
                y += 1
            backward[index] = x
            if x > n:
                backward_end += 2
            elif y > m:
                backward_start += 2
            elif not front:
                mirror = offset + delta - k
                if 0 <= mirror < size and forward[mirror] != -1:
                    forward_x = forward[mirror]
                    forward_y = forward_x - (mirror - offset)
                    if forward_x >= n - x:
                        return old_start + forward_x, new_start + forward_y
    return None
