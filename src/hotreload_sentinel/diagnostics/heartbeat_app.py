"""Reference heartbeat responder for the monitored application.

Apps embed this to expose ``GET /heartbeat`` and advertise their port through a
``hotreload-diag-<pid>.port`` file the sentinel discovers.
"""

import contextlib
import os
import threading
from datetime import UTC, datetime
from pathlib import Path

from fastapi import FastAPI


class UpdateCounter:
    """Cumulative hot reload update counter.

    The app's metadata update handler calls ``increment()`` each time a patch
    is applied; the heartbeat reports the current value.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0
        self._last_update: datetime | None = None

    @property
    def value(self) -> int:
        return self._count

    @property
    def last_update_utc(self) -> datetime | None:
        return self._last_update

    def increment(self) -> int:
        """Record one applied update and return the new count."""
        with self._lock:
            self._count += 1
            self._last_update = datetime.now(UTC)
            return self._count

    def reset(self) -> None:
        """Reset to zero (for tests)."""
        with self._lock:
            self._count = 0
            self._last_update = None


def create_heartbeat_app(counter: UpdateCounter | None = None) -> FastAPI:
    """Create the heartbeat application."""
    counter = counter or UpdateCounter()
    app = FastAPI(title="Hot Reload Heartbeat", docs_url=None, redoc_url=None)
    app.state.counter = counter

    @app.get("/heartbeat")
    async def heartbeat() -> dict:
        last = counter.last_update_utc
        return {
            "pid": os.getpid(),
            "updateCount": counter.value,
            "lastUpdateTimestampUtc": last.isoformat() if last else None,
        }

    return app


def port_file_path(tmp_dir: str | Path, pid: int | None = None) -> Path:
    return Path(tmp_dir) / f"hotreload-diag-{pid or os.getpid()}.port"


def write_port_file(tmp_dir: str | Path, port: int) -> Path:
    """Advertise ``port`` for discovery and return the file written."""
    path = port_file_path(tmp_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(port))
    return path


def remove_port_file(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        path.unlink()
