"""Locate before/after artifact pairs written by the hot reload log directory.

With Edit-and-Continue logging enabled, every apply drops a
``<File>.<gen>.<n>.old.cs`` / ``.new.cs`` snapshot pair next to Session.log.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from hotreload_sentinel.parsing.unified_diff import DELETE, INSERT, generate

logger = logging.getLogger(__name__)

OLD_SUFFIX = ".old.cs"
NEW_SUFFIX = ".new.cs"


@dataclass
class ArtifactPair:
    """A matched before/after snapshot of one source file."""

    old_path: Path
    new_path: Path
    name: str
    source_file: str
    mtime: float


def read_lines(path: Path) -> list[str]:
    """Read a snapshot as lines, dropping a UTF-8 BOM."""
    return path.read_text(encoding="utf-8-sig", errors="replace").splitlines()


def find_all_since(hot_reload_dir: str | Path, after_mtime: float | None = None) -> list[ArtifactPair]:
    """Find artifact pairs newer than ``after_mtime``.

    Args:
        hot_reload_dir: Directory searched recursively for ``*.old.cs`` files.
        after_mtime: Only pairs whose old file is strictly newer are returned.

    Returns:
        Pairs sorted by modification time, oldest first.
    """
    root = Path(hot_reload_dir)
    if not root.is_dir():
        return []

    threshold = after_mtime or 0.0
    pairs: list[ArtifactPair] = []
    for old_file in root.rglob(f"*{OLD_SUFFIX}"):
        new_file = old_file.with_name(old_file.name[: -len(OLD_SUFFIX)] + NEW_SUFFIX)
        if not new_file.exists():
            continue
        try:
            mtime = old_file.stat().st_mtime
        except OSError as e:
            logger.debug(f"Error scanning {old_file}: {e}")
            continue
        if mtime <= threshold:
            continue

        pairs.append(
            ArtifactPair(
                old_path=old_file,
                new_path=new_file,
                name=old_file.name[: -len(OLD_SUFFIX)],
                source_file=str(old_file.relative_to(root)),
                mtime=mtime,
            )
        )

    pairs.sort(key=lambda p: p.mtime)
    return pairs


def find_latest(hot_reload_dir: str | Path, after_mtime: float | None = None) -> ArtifactPair | None:
    """Return the most recent pair newer than ``after_mtime``, if any."""
    pairs = find_all_since(hot_reload_dir, after_mtime)
    return pairs[-1] if pairs else None


def diff_preview(old_path: str | Path, new_path: str | Path, max_lines: int = 10) -> str:
    """Summarize a pair as its first ``max_lines`` changed lines joined by `` | ``."""
    old, new = Path(old_path), Path(new_path)
    if not old.exists() or not new.exists():
        return ""

    diff = generate(read_lines(old), read_lines(new))
    changed = [line for line in diff if line.startswith((DELETE, INSERT))]
    return " | ".join(changed[:max_lines])
