"""Atomic, file-backed persistence of the sentinel state and its verdicts.

Several processes read-modify-write the same file without locks. Each write
lands atomically (temp file + rename), so readers never see a torn document,
but concurrent read-modify-write cycles are last-writer-wins.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import ValidationError

from hotreload_sentinel.config import MAX_VERDICTS
from hotreload_sentinel.domain import AtomVerdict, OverallVerdict, SentinelState, VerdictEntry

logger = logging.getLogger(__name__)


class RecordResult(NamedTuple):
    """Outcome of recording developer verdicts."""

    found: bool
    verdict: str


def aggregate_verdict(atom_verdicts: dict[str, str]) -> OverallVerdict:
    """Derive the overall verdict from per-atom answers."""
    values = list(atom_verdicts.values())
    if not values:
        return OverallVerdict.SKIPPED
    if all(v == "yes" for v in values):
        return OverallVerdict.ALL_GOOD
    if all(v == "no" for v in values):
        return OverallVerdict.ALL_FAILED
    return OverallVerdict.MIXED


def validate_atom_verdicts(raw: Any) -> dict[str, str]:
    """Normalize a developer verdict mapping.

    Raises:
        ValueError: If ``raw`` is not an object of atom index -> yes/no/partial.
    """
    if not isinstance(raw, dict):
        raise ValueError("verdicts must be an object of atom index to verdict")
    allowed = {v.value for v in AtomVerdict}
    result: dict[str, str] = {}
    for key, value in raw.items():
        if not isinstance(value, str) or value not in allowed:
            raise ValueError(f"Invalid verdict for atom {key}: {value!r} (expected yes, no or partial)")
        result[str(key)] = value
    return result


class VerdictStore:
    """Reads and writes the shared SentinelState JSON document."""

    def __init__(self, state_path: str | Path, max_verdicts: int = MAX_VERDICTS):
        self.state_path = Path(state_path)
        self.max_verdicts = max_verdicts

    def read(self) -> SentinelState:
        """Load the state, substituting a fresh one if missing or corrupt."""
        try:
            content = self.state_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return SentinelState()
        except OSError as e:
            logger.debug(f"Failed to read state file {self.state_path}: {e}")
            return SentinelState()

        try:
            return SentinelState.model_validate_json(content)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Ignoring corrupt state file {self.state_path}: {e}")
            return SentinelState()

    def write(self, state: SentinelState) -> None:
        """Persist the state atomically.

        Raises:
            OSError: If the temp file cannot be written or renamed.
        """
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = state.model_dump_json(exclude_none=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_path.parent,
            prefix=f".{self.state_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.state_path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    def append_verdict(self, entry: VerdictEntry) -> None:
        """Append a verdict entry, keeping only the newest ``max_verdicts``."""
        state = self.read()
        state.add_verdict(entry, self.max_verdicts)
        self.write(state)

    def get_pending(self) -> list[VerdictEntry]:
        """Entries with atoms that have no developer verdicts yet."""
        return [v for v in self.read().verdicts if v.is_pending]

    def record_verdict(self, apply_index: int, atom_verdicts: dict[str, str]) -> RecordResult:
        """Record per-atom verdicts for an apply event.

        Args:
            apply_index: The apply event to update.
            atom_verdicts: Atom index (as string) -> "yes" | "no" | "partial".

        Returns:
            RecordResult; ``found`` is False when no entry has that apply index.
        """
        state = self.read()
        entry = state.find_verdict(apply_index)
        if entry is None:
            return RecordResult(found=False, verdict=OverallVerdict.NOT_FOUND.value)

        entry.atom_verdicts = dict(atom_verdicts)
        entry.verdict = aggregate_verdict(entry.atom_verdicts).value
        self.write(state)
        logger.info(f"Recorded verdict {entry.verdict} for apply {apply_index}")
        return RecordResult(found=True, verdict=entry.verdict)
