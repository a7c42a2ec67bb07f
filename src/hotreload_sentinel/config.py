"""Sentinel configuration.

All paths derive from a single temp directory shared by the watcher daemon,
one-shot CLI invocations and the MCP server, so every process agrees on where
the state file, pid file and port files live.
"""

import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

TMPDIR_ENV: Final = "HOTRELOAD_SENTINEL_TMPDIR"
# Set by developers to make Roslyn's Edit-and-Continue write Session.log
ENC_LOG_DIR_ENV: Final = "Microsoft_CodeAnalysis_EditAndContinue_LogDir"

STATE_FILE_NAME: Final = "hotreload-sentinel.state.json"
PID_FILE_NAME: Final = "hotreload-sentinel.pid"
WATCH_LOG_FILE_NAME: Final = "hotreload-sentinel.watch.log"
PORT_FILE_PATTERN: Final = "hotreload-diag-*.port"
SESSION_LOG_NAME: Final = "Session.log"

POLL_INTERVAL_SECONDS: Final = 2.0
HEARTBEAT_TIMEOUT_SECONDS: Final = 2.0
HEARTBEAT_RECENT_SECONDS: Final = 10.0
LOG_RECENT_SECONDS: Final = 20.0
MAX_VERDICTS: Final = 50
COMMAND_TIMEOUT_SECONDS: Final = 15.0


def default_tmp_dir() -> Path:
    """Get the platform temp directory used when nothing is configured."""
    if sys.platform == "win32":
        return Path(tempfile.gettempdir())
    return Path("/tmp")


@dataclass
class SentinelConfig:
    """Filesystem locations and timing for one sentinel installation."""

    tmp_dir: Path
    hot_reload_dir: Path
    poll_interval: float = POLL_INTERVAL_SECONDS
    heartbeat_timeout: float = HEARTBEAT_TIMEOUT_SECONDS
    command_timeout: float = COMMAND_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, tmp_dir: str | Path | None = None) -> "SentinelConfig":
        """Build a config from an explicit temp dir or the environment.

        Args:
            tmp_dir: Overrides HOTRELOAD_SENTINEL_TMPDIR when given.

        Returns:
            SentinelConfig with all derived paths.
        """
        if tmp_dir is None:
            env_tmp = os.environ.get(TMPDIR_ENV)
            base = Path(env_tmp) if env_tmp else default_tmp_dir()
        else:
            base = Path(tmp_dir)

        enc_dir = os.environ.get(ENC_LOG_DIR_ENV)
        hot_reload_dir = Path(enc_dir) if enc_dir else base / "HotReloadLog"
        return cls(tmp_dir=base, hot_reload_dir=hot_reload_dir)

    @property
    def session_log_path(self) -> Path:
        return self.hot_reload_dir / SESSION_LOG_NAME

    @property
    def state_path(self) -> Path:
        return self.tmp_dir / STATE_FILE_NAME

    @property
    def pid_path(self) -> Path:
        return self.tmp_dir / PID_FILE_NAME

    @property
    def watch_log_path(self) -> Path:
        return self.tmp_dir / WATCH_LOG_FILE_NAME

    @property
    def port_glob(self) -> Path:
        return self.tmp_dir / PORT_FILE_PATTERN
