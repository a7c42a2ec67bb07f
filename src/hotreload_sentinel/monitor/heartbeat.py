"""Poll hot reload heartbeat endpoints exposed by the running app."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from hotreload_sentinel.config import HEARTBEAT_TIMEOUT_SECONDS
from hotreload_sentinel.monitor.endpoints import EndpointInfo

logger = logging.getLogger(__name__)


@dataclass
class HeartbeatResult:
    """Outcome of one heartbeat probe."""

    ok: bool
    url: str
    pid: int | None = None
    update_count: int | None = None
    last_update_timestamp: str | None = None
    error: str | None = None
    raw_payload: dict[str, Any] | None = None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class HeartbeatPoller:
    """Issues short-timeout ``GET /heartbeat`` probes.

    Pass an ``httpx.AsyncClient`` to reuse a connection pool or to route
    requests through a test transport; otherwise a client is created per poll.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = HEARTBEAT_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.timeout = timeout

    async def _get(self, url: str) -> httpx.Response:
        if self.client is not None:
            return await self.client.get(url, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url)

    async def poll(self, url: str) -> HeartbeatResult:
        """Probe one endpoint.

        Args:
            url: Base URL such as ``http://127.0.0.1:5123``.

        Returns:
            HeartbeatResult; ``ok`` is False with ``error`` set on any failure.
        """
        heartbeat_url = url.rstrip("/") + "/heartbeat"
        try:
            response = await self._get(heartbeat_url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            return HeartbeatResult(ok=False, url=url, error=str(e) or type(e).__name__)

        if not isinstance(payload, dict):
            return HeartbeatResult(ok=False, url=url, error="Heartbeat payload is not a JSON object")

        timestamp = payload.get("lastUpdateTimestampUtc")
        return HeartbeatResult(
            ok=True,
            url=url,
            pid=_optional_int(payload.get("pid")),
            update_count=_optional_int(payload.get("updateCount")),
            last_update_timestamp=timestamp if isinstance(timestamp, str) else None,
            raw_payload=payload,
        )

    async def poll_first(
        self, endpoints: list[EndpointInfo]
    ) -> tuple[HeartbeatResult | None, str | None]:
        """Try endpoints in order and stop at the first reachable one.

        Returns:
            Tuple of (first successful result or None, last error seen).
        """
        last_error: str | None = None
        for endpoint in endpoints:
            result = await self.poll(endpoint.url)
            if result.ok:
                return result, last_error
            logger.debug(f"Heartbeat {endpoint.url} unreachable: {result.error}")
            last_error = result.error
        return None, last_error
