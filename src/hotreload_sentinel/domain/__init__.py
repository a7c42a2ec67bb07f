"""Domain models and enums."""

from hotreload_sentinel.domain.enums import (
    AtomVerdict,
    ChangeKind,
    CheckStatus,
    OverallVerdict,
    SentinelStatus,
)
from hotreload_sentinel.domain.models import AtomInfo, SentinelState, VerdictEntry

__all__ = [
    "AtomInfo",
    "AtomVerdict",
    "ChangeKind",
    "CheckStatus",
    "OverallVerdict",
    "SentinelState",
    "SentinelStatus",
    "VerdictEntry",
]
