"""Incremental Session.log parsing.

Roslyn's Edit-and-Continue service appends to Session.log while the debug
session runs. The parser remembers a byte offset so each scan only classifies
lines written since the previous one.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LogMarkers:
    """Event counts observed in one incremental scan."""

    save_count: int = 0
    apply_count: int = 0
    xaml_code_behind_change_count: int = 0
    xaml_change_count: int = 0
    xaml_apply_count: int = 0
    enc1008_count: int = 0
    result_success_count: int = 0
    result_failure_count: int = 0
    not_applied_count: int = 0
    not_applied_other_tfm_count: int = 0
    connection_lost_count: int = 0
    last_solution_update: str | None = None
    has_activity: bool = False


# (pattern, counter) pairs. Every matching pair increments, so one line may
# bump several counters (an apply line is also a success line).
LINE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Found \d+ potentially changed"), "save_count"),
    (
        re.compile(r"Solution update \d+\.\d+ status:\s*(Ready|ManagedModuleUpdate)"),
        "apply_count",
    ),
    (
        re.compile(r"Document changed, added, or deleted:\s*'.*\.xaml\.cs'", re.IGNORECASE),
        "xaml_code_behind_change_count",
    ),
    (
        re.compile(r"Document changed, added, or deleted:\s*'.*\.xaml'", re.IGNORECASE),
        "xaml_change_count",
    ),
    (
        re.compile(
            r"(XAML.*Hot Reload|Hot Reload.*XAML).*(applied|apply|updated|update)",
            re.IGNORECASE,
        ),
        "xaml_apply_count",
    ),
    (re.compile(r"ENC1008"), "enc1008_count"),
    (re.compile(r"Solution update \d+\.\d+ status:\s*Ready"), "result_success_count"),
    (re.compile(r"Solution update \d+\.\d+ status:\s*Blocked"), "result_failure_count"),
    (
        re.compile(r"connection has been closed|Connection lost", re.IGNORECASE),
        "connection_lost_count",
    ),
]

# The other-TFM pattern is a strict refinement of the general one; a line is
# counted against exactly one of the two.
NOT_APPLIED_PATTERN = re.compile(r"Changes not applied.*not built")
NOT_APPLIED_OTHER_TFM_PATTERN = re.compile(
    r"Changes not applied.*not built.*other target framework"
)

LAST_SOLUTION_UPDATE_PATTERN = re.compile(r"Solution update \d+\.\d+ status:\s*\w+")


def classify_line(line: str, markers: LogMarkers) -> None:
    """Accumulate the counters matched by a single log line into ``markers``."""
    for pattern, counter in LINE_PATTERNS:
        if pattern.search(line):
            setattr(markers, counter, getattr(markers, counter) + 1)

    if NOT_APPLIED_PATTERN.search(line):
        if NOT_APPLIED_OTHER_TFM_PATTERN.search(line):
            markers.not_applied_other_tfm_count += 1
        else:
            markers.not_applied_count += 1

    match = LAST_SOLUTION_UPDATE_PATTERN.search(line)
    if match:
        markers.last_solution_update = match.group(0)

    markers.has_activity = True


class SessionLogParser:
    """Tails Session.log from a saved byte offset.

    Usage:
        parser = SessionLogParser()
        parser.seek_to_end(log_path)  # ignore history
        markers = parser.parse(log_path)  # only lines appended since
    """

    def __init__(self, offset: int = 0):
        self.offset = offset

    def seek_to_end(self, log_path: str | Path) -> None:
        """Move the offset to the current end of the log, if it exists."""
        try:
            self.offset = Path(log_path).stat().st_size
        except OSError:
            self.offset = 0

    def parse(self, log_path: str | Path) -> LogMarkers:
        """Scan lines appended since the last call.

        Args:
            log_path: Path to Session.log. May be missing or concurrently appended to.

        Returns:
            LogMarkers for the new lines. Empty when the file is missing or unreadable.
        """
        markers = LogMarkers()
        path = Path(log_path)
        if not path.exists():
            return markers

        try:
            # Plain read mode never locks the file against the writer.
            with path.open("rb") as fh:
                size = fh.seek(0, 2)
                if size < self.offset:
                    logger.debug(f"{path} shrank below offset {self.offset}, rescanning")
                    self.offset = 0
                fh.seek(self.offset)

                for raw in fh:
                    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                    classify_line(line, markers)

                self.offset = fh.tell()
        except OSError as e:
            logger.debug(f"Error reading {path}: {e}")
            return LogMarkers()

        return markers
