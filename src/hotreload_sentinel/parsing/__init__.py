"""Session log parsing, artifact diffing and change atom extraction."""

from hotreload_sentinel.parsing.artifacts import (
    ArtifactPair,
    diff_preview,
    find_all_since,
    find_latest,
)
from hotreload_sentinel.parsing.atoms import ChangeAtom, extract, extract_lines
from hotreload_sentinel.parsing.session_log import LogMarkers, SessionLogParser
from hotreload_sentinel.parsing.unified_diff import edit_script, generate

__all__ = [
    "ArtifactPair",
    "ChangeAtom",
    "LogMarkers",
    "SessionLogParser",
    "diff_preview",
    "edit_script",
    "extract",
    "extract_lines",
    "find_all_since",
    "find_latest",
    "generate",
]
