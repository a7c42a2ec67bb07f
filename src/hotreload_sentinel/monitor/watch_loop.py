"""Background watch loop merging Session.log and heartbeat evidence.

Each cycle re-reads the shared state (other processes may have recorded
verdicts), folds in the log lines appended since the last cycle, polls the
heartbeat endpoints, and writes the result back. When the apply counter moves,
the newest artifact pair is turned into change atoms awaiting confirmation.
"""

import asyncio
import contextlib
import logging
import os
import time

from hotreload_sentinel.config import (
    HEARTBEAT_RECENT_SECONDS,
    LOG_RECENT_SECONDS,
    SentinelConfig,
)
from hotreload_sentinel.domain import SentinelState, SentinelStatus, VerdictEntry
from hotreload_sentinel.monitor.endpoints import discover
from hotreload_sentinel.monitor.heartbeat import HeartbeatPoller
from hotreload_sentinel.parsing import LogMarkers, SessionLogParser, extract, find_latest
from hotreload_sentinel.verdicts import VerdictStore

logger = logging.getLogger(__name__)

# Counters folded additively from LogMarkers into SentinelState
MERGED_COUNTERS = (
    "save_count",
    "apply_count",
    "enc1008_count",
    "result_success_count",
    "result_failure_count",
    "not_applied_count",
    "not_applied_other_tfm_count",
    "connection_lost_count",
    "xaml_change_count",
    "xaml_code_behind_change_count",
    "xaml_apply_count",
)


def compute_status(state: SentinelState, now: float | None = None) -> SentinelStatus:
    """Classify overall health from heartbeat and log freshness.

    Decision logic:
    - Watcher not alive: IDLE
    - Heartbeat < 10s old and log activity < 20s old: ACTIVE
    - Exactly one of them recent: DEGRADED
    - Neither recent but the last poll reached the app: DEGRADED
    - Otherwise: IDLE
    """
    if not state.watcher_alive:
        return SentinelStatus.IDLE

    now = time.time() if now is None else now
    recent_heartbeat = (
        state.last_heartbeat_ts is not None
        and now - state.last_heartbeat_ts < HEARTBEAT_RECENT_SECONDS
    )
    recent_log = (
        state.last_log_activity_ts is not None
        and now - state.last_log_activity_ts < LOG_RECENT_SECONDS
    )

    if recent_heartbeat and recent_log:
        return SentinelStatus.ACTIVE
    if recent_heartbeat or recent_log:
        return SentinelStatus.DEGRADED
    if state.heartbeat_ok:
        return SentinelStatus.DEGRADED
    return SentinelStatus.IDLE


def merge_markers(state: SentinelState, markers: LogMarkers, now: float) -> None:
    """Fold one scan's counters into the cumulative state."""
    if not markers.has_activity:
        return
    state.last_log_activity_ts = now
    for counter in MERGED_COUNTERS:
        setattr(state, counter, getattr(state, counter) + getattr(markers, counter))
    if markers.last_solution_update is not None:
        state.last_solution_update = markers.last_solution_update


class WatchLoop:
    """Sequential polling loop run by the watcher daemon.

    Usage:
        loop = WatchLoop(config, VerdictStore(config.state_path))
        stop = asyncio.Event()
        await loop.run(stop)  # until stop.set()
    """

    def __init__(
        self,
        config: SentinelConfig,
        store: VerdictStore,
        poller: HeartbeatPoller | None = None,
        interval: float | None = None,
    ):
        self.config = config
        self.store = store
        self.poller = poller or HeartbeatPoller(timeout=config.heartbeat_timeout)
        self.interval = config.poll_interval if interval is None else interval
        self.parser = SessionLogParser()
        self.pid = os.getpid()

        self._prev_apply_count = 0
        self._last_artifact_mtime: float | None = None

    def start(self) -> SentinelState:
        """Mark the watcher alive and skip history that predates it."""
        self.parser.seek_to_end(self.config.session_log_path)
        latest = find_latest(self.config.hot_reload_dir)
        self._last_artifact_mtime = latest.mtime if latest else None

        state = self.store.read()
        state.watcher_alive = True
        state.watcher_pid = self.pid
        state.started_at = time.time()
        state.session_log_offset = self.parser.offset
        self._prev_apply_count = state.apply_count
        self.store.write(state)
        logger.info(f"Watcher started (pid={self.pid}, log offset={self.parser.offset})")
        return state

    async def run_once(self) -> SentinelState:
        """Run a single poll cycle and persist the merged state."""
        state = self.store.read()
        state.watcher_alive = True
        state.watcher_pid = self.pid

        markers = self.parser.parse(self.config.session_log_path)
        merge_markers(state, markers, time.time())
        state.session_log_offset = self.parser.offset

        endpoints = discover(self.config.port_glob)
        state.endpoints = [e.url for e in endpoints]
        state.heartbeat_ok = False
        result, state.last_poll_error = await self.poller.poll_first(endpoints)
        if result is not None:
            state.heartbeat_ok = True
            state.last_heartbeat_ts = time.time()
            state.selected_endpoint = result.url
            state.selected_pid = result.pid
            state.last_heartbeat_update_count = result.update_count
            state.last_heartbeat_update_ts = result.last_update_timestamp

        state.status = compute_status(state).value

        if state.apply_count > self._prev_apply_count:
            entry = self._capture_atoms(state.apply_count)
            if entry is not None:
                state.add_verdict(entry, self.store.max_verdicts)
        self._prev_apply_count = state.apply_count

        self.store.write(state)
        return state

    def _capture_atoms(self, apply_index: int) -> VerdictEntry | None:
        """Turn the newest unseen artifact pair into a pending verdict entry."""
        artifact = find_latest(self.config.hot_reload_dir, self._last_artifact_mtime)
        if artifact is None:
            logger.debug(f"Apply {apply_index} observed without a new artifact pair")
            return None

        self._last_artifact_mtime = artifact.mtime
        atoms = extract(artifact.old_path, artifact.new_path)
        if not atoms:
            return None

        logger.info(f"Apply {apply_index}: {len(atoms)} change atoms from {artifact.source_file}")
        return VerdictEntry(
            apply_index=apply_index,
            artifact_pair=artifact.name,
            atoms=[atom.to_info() for atom in atoms],
        )

    def stop(self) -> None:
        """Mark the watcher as no longer alive."""
        state = self.store.read()
        state.watcher_alive = False
        state.status = compute_status(state).value
        self.store.write(state)
        logger.info("Watcher stopped")

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Poll until ``stop_event`` is set or the task is cancelled."""
        stop_event = stop_event or asyncio.Event()
        started = False

        try:
            while not stop_event.is_set():
                try:
                    if not started:
                        self.start()
                        started = True
                    await self.run_once()
                except Exception as e:
                    # Failed cycles, including a failed start, are retried next interval
                    logger.warning(f"Watch cycle failed: {type(e).__name__}: {e}")

                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
        finally:
            with contextlib.suppress(OSError):
                self.stop()
