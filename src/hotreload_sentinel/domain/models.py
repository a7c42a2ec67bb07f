"""Persisted domain models for the sentinel state file.

The state file is the only thing shared between the watcher daemon, one-shot
CLI invocations and the MCP server. Field names serialize as lower snake case
and ``None`` fields are omitted on write.
"""

from pydantic import BaseModel, Field

from hotreload_sentinel.config import MAX_VERDICTS


class AtomInfo(BaseModel):
    """Serialized projection of a ChangeAtom."""

    kind: str = ""
    control_hint: str = "unknown"
    change_summary: str = ""
    file: str = ""
    line_hint: int = 0


class VerdictEntry(BaseModel):
    """Confirmation record for one apply event."""

    apply_index: int
    artifact_pair: str = ""
    verdict: str | None = None
    atoms: list[AtomInfo] = Field(default_factory=list)
    # atom index (as string) -> "yes" | "no" | "partial"
    atom_verdicts: dict[str, str] = Field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        """True when atoms exist but the developer has not answered yet."""
        return bool(self.atoms) and not self.atom_verdicts


class SentinelState(BaseModel):
    """Process-wide status record persisted as a single JSON document."""

    watcher_alive: bool = False
    watcher_pid: int | None = None
    started_at: float | None = None
    last_log_activity_ts: float | None = None
    last_heartbeat_ts: float | None = None
    heartbeat_ok: bool = False
    last_poll_error: str | None = None
    status: str | None = None
    endpoints: list[str] = Field(default_factory=list)
    selected_endpoint: str | None = None
    selected_pid: int | None = None
    last_heartbeat_update_count: int | None = None
    last_heartbeat_update_ts: str | None = None
    session_log_offset: int = 0

    # Cumulative log counters
    save_count: int = 0
    apply_count: int = 0
    result_success_count: int = 0
    result_failure_count: int = 0
    enc1008_count: int = 0
    not_applied_count: int = 0
    not_applied_other_tfm_count: int = 0
    connection_lost_count: int = 0
    xaml_change_count: int = 0
    xaml_code_behind_change_count: int = 0
    xaml_apply_count: int = 0
    last_solution_update: str | None = None

    verdicts: list[VerdictEntry] = Field(default_factory=list)

    def add_verdict(self, entry: VerdictEntry, limit: int = MAX_VERDICTS) -> None:
        """Append a verdict entry, evicting the oldest beyond ``limit``."""
        self.verdicts.append(entry)
        if len(self.verdicts) > limit:
            del self.verdicts[: len(self.verdicts) - limit]

    def find_verdict(self, apply_index: int) -> VerdictEntry | None:
        """Return the first entry recorded for ``apply_index``."""
        for entry in self.verdicts:
            if entry.apply_index == apply_index:
                return entry
        return None
