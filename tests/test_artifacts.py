"""Tests for artifact pair discovery and previews."""

import os
from pathlib import Path

from hotreload_sentinel.parsing.artifacts import diff_preview, find_all_since, find_latest


def make_pair(root: Path, name: str, mtime: float, old: str = "a\n", new: str = "b\n") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    old_path = root / f"{name}.old.cs"
    new_path = root / f"{name}.new.cs"
    old_path.write_text(old)
    new_path.write_text(new)
    os.utime(old_path, (mtime, mtime))
    return old_path


class TestFindAllSince:
    """Tests for find_all_since and find_latest."""

    def test_sorted_by_mtime(self, tmp_path: Path):
        """Pairs come back oldest first, including nested directories."""
        make_pair(tmp_path, "B.1.1", 2000.0)
        make_pair(tmp_path / "sub", "A.1.1", 1000.0)

        pairs = find_all_since(tmp_path)
        assert [p.name for p in pairs] == ["A.1.1", "B.1.1"]
        assert pairs[0].source_file == str(Path("sub") / "A.1.1.old.cs")

    def test_threshold_is_strict(self, tmp_path: Path):
        """Pairs at exactly the threshold are excluded."""
        make_pair(tmp_path, "A.1.1", 1000.0)
        make_pair(tmp_path, "B.1.1", 2000.0)

        assert [p.name for p in find_all_since(tmp_path, 1000.0)] == ["B.1.1"]
        assert find_latest(tmp_path, 2000.0) is None

    def test_requires_new_sibling(self, tmp_path: Path):
        """An .old.cs without its .new.cs is ignored."""
        (tmp_path / "Lonely.1.1.old.cs").write_text("x")
        assert find_all_since(tmp_path) == []

    def test_missing_directory(self, tmp_path: Path):
        """A missing directory has no pairs."""
        assert find_latest(tmp_path / "nope") is None

    def test_find_latest(self, tmp_path: Path):
        """The newest pair wins."""
        make_pair(tmp_path, "A.1.1", 1000.0)
        make_pair(tmp_path, "B.1.1", 3000.0)
        make_pair(tmp_path, "C.1.1", 2000.0)

        latest = find_latest(tmp_path)
        assert latest is not None
        assert latest.name == "B.1.1"
        assert latest.mtime == 3000.0


class TestDiffPreview:
    """Tests for diff_preview."""

    def test_changed_lines_only(self, tmp_path: Path):
        """Only removed and added lines are joined."""
        old_path = make_pair(tmp_path, "A.1.1", 1000.0, old="keep\nold\n", new="keep\nnew\n")
        preview = diff_preview(old_path, tmp_path / "A.1.1.new.cs")
        assert preview == "-old | +new"

    def test_limit(self, tmp_path: Path):
        """At most max_lines changed lines are included."""
        old = "".join(f"o{i}\n" for i in range(10))
        new = "".join(f"n{i}\n" for i in range(10))
        old_path = make_pair(tmp_path, "A.1.1", 1000.0, old=old, new=new)

        preview = diff_preview(old_path, tmp_path / "A.1.1.new.cs", max_lines=3)
        assert len(preview.split(" | ")) == 3

    def test_missing_files(self, tmp_path: Path):
        """Missing files produce an empty preview."""
        assert diff_preview(tmp_path / "a.old.cs", tmp_path / "a.new.cs") == ""
