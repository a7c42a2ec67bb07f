"""Human-oriented summaries of the shared state."""

from typing import Any

from hotreload_sentinel.domain import SentinelState, VerdictEntry


def report_hints(state: SentinelState) -> list[str]:
    """Actionable hints derived from cumulative counters."""
    hints: list[str] = []
    if state.enc1008_count > 0:
        hints.append("ENC1008 detected; rebuild solution and restart debug session.")
    if state.not_applied_count > 0:
        hints.append("Detected 'changes not applied'; verify target framework/build freshness.")
    if state.apply_count == 0:
        hints.append("No apply events seen; ensure Session.log is active.")
    if not state.heartbeat_ok:
        hints.append("No live heartbeat endpoint detected; app may be stale or not running.")
    return hints or ["No obvious issues found."]


def format_report(state: SentinelState) -> str:
    return f"hr_report: status={state.status} hints={'; '.join(report_hints(state))}"


def pending_payload(entries: list[VerdictEntry]) -> dict[str, Any]:
    """JSON-ready view of unconfirmed entries with indexed atoms."""
    return {
        "pending": [
            {
                "apply_index": entry.apply_index,
                "artifact_pair": entry.artifact_pair,
                "verdict": entry.verdict,
                "atoms": [{"index": i, **atom.model_dump()} for i, atom in enumerate(entry.atoms)],
            }
            for entry in entries
        ],
        "message": None if entries else "No unconfirmed atoms.",
    }
