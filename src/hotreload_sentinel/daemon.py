"""Watcher daemon lifecycle: pid file, detached spawn, stop."""

import contextlib
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from hotreload_sentinel.config import SentinelConfig

logger = logging.getLogger(__name__)


def read_pid(pid_path: Path) -> int:
    """Return the pid stored in ``pid_path``, or 0 when absent/garbage."""
    try:
        content = pid_path.read_text().strip()
    except OSError:
        return 0
    return int(content) if content.isdigit() else 0


def write_pid(pid_path: Path, pid: int | None = None) -> None:
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(str(pid or os.getpid()))


def remove_pid(pid_path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        pid_path.unlink()


def is_process_alive(pid: int) -> bool:
    """Check whether a process with ``pid`` exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    except OSError:
        return False
    return True


def running_watcher_pid(config: SentinelConfig) -> int:
    """Pid of the live watcher daemon, or 0."""
    pid = read_pid(config.pid_path)
    return pid if is_process_alive(pid) else 0


def sentinel_command(config: SentinelConfig) -> list[str]:
    """Command prefix that re-invokes this CLI against the same temp dir."""
    return [sys.executable, "-m", "hotreload_sentinel", "--tmp-dir", str(config.tmp_dir)]


def start_watcher(config: SentinelConfig) -> tuple[bool, int]:
    """Spawn the watcher daemon unless one is already running.

    Returns:
        Tuple of (started, pid). ``started`` is False when a live watcher exists.
    """
    existing = running_watcher_pid(config)
    if existing:
        return False, existing
    remove_pid(config.pid_path)

    config.tmp_dir.mkdir(parents=True, exist_ok=True)
    kwargs: dict = {}
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.DETACHED_PROCESS
    else:
        kwargs["start_new_session"] = True

    with config.watch_log_path.open("ab") as log_file:
        process = subprocess.Popen(
            [*sentinel_command(config), "_watch-run"],
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            **kwargs,
        )

    # Written here as well so a status call right after start sees it
    write_pid(config.pid_path, process.pid)
    logger.info(f"Started watcher pid={process.pid}")
    return True, process.pid


def stop_watcher(config: SentinelConfig) -> int:
    """Terminate the watcher daemon.

    Returns:
        The stopped pid, or 0 if nothing was running.
    """
    pid = running_watcher_pid(config)
    if pid:
        with contextlib.suppress(OSError):
            os.kill(pid, signal.SIGTERM)
        logger.info(f"Sent SIGTERM to watcher pid={pid}")
    remove_pid(config.pid_path)
    return pid
