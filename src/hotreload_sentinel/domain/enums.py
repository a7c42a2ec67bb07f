"""Enumerations for domain models."""

from enum import Enum


class SentinelStatus(str, Enum):
    """Overall hot reload health derived from log and heartbeat freshness."""

    ACTIVE = "ACTIVE"  # Both log activity and heartbeat are recent
    DEGRADED = "DEGRADED"  # Only one signal is recent, or heartbeat went stale
    IDLE = "IDLE"  # Watcher not running or nothing ever observed


class ChangeKind(str, Enum):
    """Shape of a single diff hunk."""

    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"


class AtomVerdict(str, Enum):
    """Developer answer to "did this change show up in the running app?"."""

    YES = "yes"
    NO = "no"
    PARTIAL = "partial"


class OverallVerdict(str, Enum):
    """Aggregate verdict for one apply event."""

    ALL_GOOD = "all_good"
    ALL_FAILED = "all_failed"
    MIXED = "mixed"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"


class CheckStatus(str, Enum):
    """Diagnostic check outcome."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
