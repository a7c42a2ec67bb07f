"""Minimal line-based unified diff.

Inputs are single source files captured around one hot reload apply, so the
full O(m*n) LCS table is affordable and keeps the alignment exact.
"""

from collections.abc import Sequence
from typing import NamedTuple

EQUAL = " "
DELETE = "-"
INSERT = "+"

DEFAULT_CONTEXT = 3


class Edit(NamedTuple):
    """One operation of the edit script. Unused indexes are -1."""

    op: str
    old_index: int
    new_index: int


def lcs_table(a: Sequence[str], b: Sequence[str]) -> list[list[int]]:
    """Build the longest-common-subsequence length table for ``a`` and ``b``."""
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for x in range(1, m + 1):
        row, prev, ax = dp[x], dp[x - 1], a[x - 1]
        for y in range(1, n + 1):
            if ax == b[y - 1]:
                row[y] = prev[y - 1] + 1
            else:
                row[y] = max(prev[y], row[y - 1])
    return dp


def edit_script(a: Sequence[str], b: Sequence[str]) -> list[Edit]:
    """Backtrack the LCS table into a forward edit script.

    Within a replaced block deletions come before insertions.
    """
    dp = lcs_table(a, b)
    i, j = len(a), len(b)
    edits: list[Edit] = []

    while i > 0 or j > 0:
        if i > 0 and j > 0 and a[i - 1] == b[j - 1] and dp[i][j] == dp[i - 1][j - 1] + 1:
            edits.append(Edit(EQUAL, i - 1, j - 1))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or dp[i][j - 1] >= dp[i - 1][j]):
            edits.append(Edit(INSERT, -1, j - 1))
            j -= 1
        else:
            edits.append(Edit(DELETE, i - 1, -1))
            i -= 1

    edits.reverse()
    return edits


def _hunk_ranges(edits: Sequence[Edit], context: int) -> list[tuple[int, int]]:
    """Inclusive edit-index ranges, one per hunk."""
    ranges: list[tuple[int, int]] = []
    last = len(edits) - 1
    for idx, edit in enumerate(edits):
        if edit.op == EQUAL:
            continue
        lo = max(0, idx - context)
        hi = min(last, idx + context)
        if ranges and lo <= ranges[-1][1] + 1:
            ranges[-1] = (ranges[-1][0], hi)
        else:
            ranges.append((lo, hi))
    return ranges


def generate(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    context: int = DEFAULT_CONTEXT,
) -> list[str]:
    """Generate unified diff hunks.

    Args:
        old_lines: Lines before the change (no trailing newlines).
        new_lines: Lines after the change.
        context: Equal lines kept on each side of a change.

    Returns:
        Flat list of ``@@ -a,b +c,d @@`` headers each followed by its
        `` ``/``-``/``+`` prefixed lines. Empty when the inputs are identical.
    """
    edits = edit_script(old_lines, new_lines)

    # Lines consumed on each side before edit k
    positions: list[tuple[int, int]] = []
    old_pos = new_pos = 0
    for edit in edits:
        positions.append((old_pos, new_pos))
        if edit.op != INSERT:
            old_pos += 1
        if edit.op != DELETE:
            new_pos += 1

    result: list[str] = []
    for start, end in _hunk_ranges(edits, context):
        old_before, new_before = positions[start]
        old_count = new_count = 0
        body: list[str] = []

        for edit in edits[start : end + 1]:
            if edit.op == EQUAL:
                body.append(f" {old_lines[edit.old_index]}")
                old_count += 1
                new_count += 1
            elif edit.op == DELETE:
                body.append(f"-{old_lines[edit.old_index]}")
                old_count += 1
            else:
                body.append(f"+{new_lines[edit.new_index]}")
                new_count += 1

        # An empty side points at the line before the hunk, as GNU diff does.
        old_start = old_before + 1 if old_count else old_before
        new_start = new_before + 1 if new_count else new_before
        result.append(f"@@ -{old_start},{old_count} +{new_start},{new_count} @@")
        result.extend(body)

    return result
