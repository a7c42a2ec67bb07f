"""Tests for the LCS-based unified diff."""

import random
import re

import pytest

from hotreload_sentinel.parsing.unified_diff import DELETE, EQUAL, INSERT, edit_script, generate

HEADER = re.compile(r"^@@ -(\d+),(\d+) \+(\d+),(\d+) @@$")


def apply_diff(source: list[str], diff: list[str], reverse: bool = False) -> list[str]:
    """Rebuild the other side of a diff from ``source`` and the hunks."""
    keep, skip = (DELETE, INSERT) if reverse else (INSERT, DELETE)
    out: list[str] = []
    pos = 0
    for line in diff:
        match = HEADER.match(line)
        if match:
            old_start, old_count, new_start, new_count = map(int, match.groups())
            start, count = (new_start, new_count) if reverse else (old_start, old_count)
            target = start - 1 if count else start
            out.extend(source[pos:target])
            pos = target
        elif line[0] == EQUAL:
            out.append(line[1:])
            pos += 1
        elif line[0] == skip:
            pos += 1
        elif line[0] == keep:
            out.append(line[1:])
    out.extend(source[pos:])
    return out


def numbered(count: int) -> list[str]:
    return [f"line {i}" for i in range(1, count + 1)]


class TestEditScript:
    """Tests for edit_script."""

    def test_deletions_precede_insertions(self):
        """A replaced line becomes a delete followed by an insert."""
        ops = [edit.op for edit in edit_script(["a", "b", "c"], ["a", "x", "c"])]
        assert ops == [EQUAL, DELETE, INSERT, EQUAL]

    def test_empty_inputs(self):
        """Nothing to do for two empty sequences."""
        assert edit_script([], []) == []


class TestGenerate:
    """Tests for generate."""

    def test_identical_inputs(self):
        """Identical sequences produce no hunks."""
        assert generate(numbered(5), numbered(5)) == []

    def test_insert_into_empty_file(self):
        """An empty old side points at line 0."""
        assert generate([], ["a", "b"]) == ["@@ -0,0 +1,2 @@", "+a", "+b"]

    def test_delete_everything(self):
        """An empty new side points at line 0."""
        assert generate(["a"], []) == ["@@ -1,1 +0,0 @@", "-a"]

    def test_single_change_with_context(self):
        """A changed line carries three lines of context on each side."""
        old = numbered(10)
        new = list(old)
        new[4] = "changed"

        assert generate(old, new) == [
            "@@ -2,7 +2,7 @@",
            " line 2",
            " line 3",
            " line 4",
            "-line 5",
            "+changed",
            " line 6",
            " line 7",
            " line 8",
        ]

    def test_nearby_changes_merge(self):
        """Changes whose context windows touch share one hunk."""
        old = numbered(20)
        new = list(old)
        new[2] = "first"
        new[6] = "second"

        headers = [line for line in generate(old, new) if line.startswith("@@")]
        assert len(headers) == 1

    def test_distant_changes_split(self):
        """Far apart changes produce separate hunks."""
        old = numbered(30)
        new = list(old)
        new[2] = "first"
        new[25] = "second"

        headers = [line for line in generate(old, new) if line.startswith("@@")]
        assert headers == ["@@ -1,6 +1,6 @@", "@@ -23,7 +23,7 @@"]

    def test_zero_context(self):
        """With no context only changed lines are emitted."""
        assert generate(["a", "b", "c"], ["a", "x", "c"], context=0) == [
            "@@ -2,1 +2,1 @@",
            "-b",
            "+x",
        ]

    @pytest.mark.parametrize(
        "old,new",
        [
            ([], []),
            (["a"], ["a", "b"]),
            (["a", "b", "c"], []),
            (numbered(12), numbered(12)[3:] + ["tail"]),
            (["x", "a", "b", "x", "c"], ["a", "x", "b", "c", "x"]),
        ],
    )
    def test_reconstructs_both_sides(self, old: list[str], new: list[str]):
        """Applying a diff forwards and backwards reproduces both inputs."""
        diff = generate(old, new)
        assert apply_diff(old, diff) == new
        assert apply_diff(new, diff, reverse=True) == old

    def test_reconstructs_random_sequences(self):
        """Reconstruction holds across random small inputs."""
        rng = random.Random(1234)
        alphabet = ["a", "b", "c", "d"]
        for _ in range(200):
            old = [rng.choice(alphabet) for _ in range(rng.randint(0, 12))]
            new = [rng.choice(alphabet) for _ in range(rng.randint(0, 12))]
            diff = generate(old, new, context=rng.randint(0, 3))
            assert apply_diff(old, diff) == new
            assert apply_diff(new, diff, reverse=True) == old
