"""Discover heartbeat endpoints advertised through port files."""

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class EndpointInfo:
    """A candidate heartbeat endpoint read from a port file."""

    port: int
    file_path: Path
    url: str


def discover(port_glob: str | Path) -> list[EndpointInfo]:
    """Read every port file matching ``port_glob``.

    Args:
        port_glob: Directory plus file pattern, e.g. ``/tmp/hotreload-diag-*.port``.

    Returns:
        Endpoints in file-name order. Files that are unreadable or do not hold
        a plain integer are skipped.
    """
    glob_path = Path(port_glob)
    directory, pattern = glob_path.parent, glob_path.name
    if not directory.is_dir():
        return []

    endpoints: list[EndpointInfo] = []
    for path in sorted(directory.glob(pattern)):
        try:
            content = path.read_text().strip()
        except OSError as e:
            # Port files vanish when the app exits
            logger.debug(f"Skipping port file {path}: {e}")
            continue
        if not content.isdigit():
            continue

        port = int(content)
        endpoints.append(EndpointInfo(port=port, file_path=path, url=f"http://127.0.0.1:{port}"))

    return endpoints
