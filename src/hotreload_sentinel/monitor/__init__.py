"""Endpoint discovery, heartbeat polling and the background watch loop."""

from hotreload_sentinel.monitor.endpoints import EndpointInfo, discover
from hotreload_sentinel.monitor.heartbeat import HeartbeatPoller, HeartbeatResult
from hotreload_sentinel.monitor.watch_loop import WatchLoop, compute_status, merge_markers

__all__ = [
    "EndpointInfo",
    "HeartbeatPoller",
    "HeartbeatResult",
    "WatchLoop",
    "compute_status",
    "discover",
    "merge_markers",
]
