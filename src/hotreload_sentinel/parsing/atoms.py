"""Turn an artifact pair's diff into discrete, human-describable change atoms.

Each hunk becomes one atom the developer can confirm ("did the Border's
background actually change on screen?").
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from hotreload_sentinel.domain import AtomInfo, ChangeKind
from hotreload_sentinel.parsing.artifacts import read_lines
from hotreload_sentinel.parsing.unified_diff import DELETE, INSERT, generate

# Checked in order; the first keyword found near the hunk wins.
SUBJECT_KEYWORDS = [
    "Border", "VStack", "HStack", "Label", "Button", "Card",
    "Grid", "StackLayout", "ScrollView", "Frame", "Image",
    "Entry", "Editor", "Picker", "Switch", "Slider", "CheckBox",
    "ContentView", "ContentPage", "CollectionView", "ListView",
    "ActivityIndicator", "ProgressBar", "BoxView", "AbsoluteLayout",
    "WebView", "SearchBar", "RadioButton", "RefreshView",
]  # fmt: skip

CONTEXT_WINDOW = 10

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")
GENERATION_SUFFIX = re.compile(r"\.\d+\.\d+\.old\.cs$")


@dataclass(frozen=True)
class ChangeAtom:
    """One classified diff hunk."""

    kind: ChangeKind
    control_hint: str  # best-guess UI control the hunk touches
    change_summary: str
    file: str
    line_hint: int

    def to_info(self) -> AtomInfo:
        """Project to the persisted form."""
        return AtomInfo(
            kind=self.kind.value,
            control_hint=self.control_hint,
            change_summary=self.change_summary,
            file=self.file,
            line_hint=self.line_hint,
        )


def display_name(old_path: str | Path) -> str:
    """``MainPage.xaml.1.2.old.cs`` -> ``MainPage.xaml.cs``."""
    return GENERATION_SUFFIX.sub(".cs", Path(old_path).name)


def guess_subject(lines: Sequence[str]) -> str:
    """Return the first subject keyword contained in any of ``lines``."""
    for keyword in SUBJECT_KEYWORDS:
        if any(keyword in line for line in lines):
            return keyword
    return "unknown"


def summarize(kind: ChangeKind, removed: Sequence[str], added: Sequence[str]) -> str:
    """Render a one-line summary from the stripped removed/added lines."""
    if kind == ChangeKind.MODIFY and len(removed) == 1 and len(added) == 1:
        return f"Changed `{removed[0]}` → `{added[0]}`"
    if kind == ChangeKind.ADD:
        return "Added " + "; ".join(added[:3])
    if kind == ChangeKind.REMOVE:
        return "Removed " + "; ".join(removed[:3])
    return f"Changed `{'; '.join(removed[:2])}` → `{'; '.join(added[:2])}`"


def _build_atom(
    hunk: list[str],
    old_start: int,
    new_start: int,
    old_lines: Sequence[str],
    file_name: str,
) -> ChangeAtom | None:
    removed = [line[1:].strip() for line in hunk if line.startswith(DELETE)]
    added_raw = [line[1:] for line in hunk if line.startswith(INSERT)]
    added = [line.strip() for line in added_raw]
    if not removed and not added:
        return None

    if removed and added:
        kind = ChangeKind.MODIFY
    elif added:
        kind = ChangeKind.ADD
    else:
        kind = ChangeKind.REMOVE

    line_hint = new_start if kind == ChangeKind.ADD else old_start

    # Window spans the removed lines only, not the hunk's trailing context
    lo = max(0, old_start - CONTEXT_WINDOW)
    hi = min(len(old_lines), old_start + len(removed) + CONTEXT_WINDOW)
    surrounding = list(old_lines[lo:hi]) + added_raw

    return ChangeAtom(
        kind=kind,
        control_hint=guess_subject(surrounding),
        change_summary=summarize(kind, removed, added),
        file=file_name,
        line_hint=line_hint,
    )


def extract_lines(
    old_lines: Sequence[str],
    new_lines: Sequence[str],
    file_name: str,
) -> list[ChangeAtom]:
    """Extract atoms from in-memory line sequences."""
    atoms: list[ChangeAtom] = []
    hunk: list[str] = []
    old_start = new_start = 0

    def flush() -> None:
        atom = _build_atom(hunk, old_start, new_start, old_lines, file_name)
        if atom is not None:
            atoms.append(atom)

    for line in generate(old_lines, new_lines):
        if line.startswith("@@"):
            flush()
            hunk = []
            match = HUNK_HEADER.match(line)
            if match:
                old_start = int(match.group(1))
                new_start = int(match.group(2))
        else:
            hunk.append(line)

    flush()
    return atoms


def extract(old_path: str | Path, new_path: str | Path) -> list[ChangeAtom]:
    """Extract change atoms from an old/new artifact file pair.

    Returns:
        Atoms in file order; empty if either file is missing.
    """
    old, new = Path(old_path), Path(new_path)
    if not old.exists() or not new.exists():
        return []
    return extract_lines(read_lines(old), read_lines(new), display_name(old))
