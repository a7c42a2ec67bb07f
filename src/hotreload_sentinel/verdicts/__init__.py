"""Verdict persistence."""

from hotreload_sentinel.verdicts.store import (
    RecordResult,
    VerdictStore,
    aggregate_verdict,
    validate_atom_verdicts,
)

__all__ = ["RecordResult", "VerdictStore", "aggregate_verdict", "validate_atom_verdicts"]
