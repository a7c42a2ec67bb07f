"""JSON-RPC dispatch for the sentinel's MCP stdio server.

Requests are routed through two tables: protocol methods keyed by ``Method``
and tools keyed by ``ToolName``. Tools that need the watcher or the filesystem
of a fresh process run the CLI as a child; tools that only touch the verdict
store are answered in-process.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Final

from hotreload_sentinel import __version__
from hotreload_sentinel.mcp.runner import CommandRunner
from hotreload_sentinel.mcp.tools import TOOL_DEFINITIONS, ToolName, ToolResult
from hotreload_sentinel.mcp.transport import McpTransport, TransportError
from hotreload_sentinel.report import format_report, pending_payload
from hotreload_sentinel.verdicts import VerdictStore, validate_atom_verdicts

logger = logging.getLogger(__name__)

PARSE_ERROR: Final = -32700
METHOD_NOT_FOUND: Final = -32601
HANDLER_FAILED: Final = -32000

SUPPORTED_PROTOCOL_VERSIONS: Final = frozenset({"2024-11-05", "2025-03-26", "2025-06-18"})
DEFAULT_PROTOCOL_VERSION: Final = "2024-11-05"
SERVER_NAME: Final = "hotreload-sentinel"

# Extra time granted to watch-follow beyond its own duration
FOLLOW_GRACE_SECONDS: Final = 15
DEFAULT_FOLLOW_SECONDS: Final = 60


class Method(str, Enum):
    """JSON-RPC methods the server understands."""

    INITIALIZE = "initialize"
    INITIALIZED = "initialized"
    PING = "ping"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


def make_result(msg_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def make_error(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


def negotiate_protocol_version(params: dict[str, Any]) -> str:
    """Echo the client's protocol version when supported, else the default."""
    requested = params.get("protocolVersion")
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return DEFAULT_PROTOCOL_VERSION


ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResult]]
MethodHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class ToolCallError(Exception):
    """A tools/call request failed; reported as a handler error."""


class McpServer:
    """Stdio MCP server exposing the hot reload tools.

    Usage:
        server = McpServer(store, CommandRunner(sentinel_command(config)))
        await server.run(await open_stdio())
    """

    def __init__(self, store: VerdictStore, runner: CommandRunner):
        self.store = store
        self.runner = runner

        self._methods: dict[Method, MethodHandler] = {
            Method.INITIALIZE: self._initialize,
            Method.INITIALIZED: self._empty,
            Method.PING: self._empty,
            Method.TOOLS_LIST: self._tools_list,
            Method.TOOLS_CALL: self._tools_call,
        }
        self._tools: dict[ToolName, ToolHandler] = {
            ToolName.WATCH_START: self._watch_start,
            ToolName.WATCH_STOP: self._watch_stop,
            ToolName.STATUS: self._status,
            ToolName.DIAGNOSE: self._diagnose,
            ToolName.REPORT: self._report,
            ToolName.WATCH_FOLLOW: self._watch_follow,
            ToolName.PENDING_ATOMS: self._pending_atoms,
            ToolName.RECORD_VERDICT: self._record_verdict,
            ToolName.DRAFT_ISSUE: self._draft_issue,
        }

    @property
    def tool_names(self) -> set[ToolName]:
        return set(self._tools)

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Dispatch one request.

        Returns:
            The response envelope, or None for notifications (no ``id``).
        """
        if "id" not in message:
            method = message.get("method")
            logger.debug(f"Notification received: {method}")
            return None

        msg_id = message["id"]
        method_name = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        try:
            method = Method(method_name)
        except ValueError:
            return make_error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method_name}")

        try:
            return make_result(msg_id, await self._methods[method](params))
        except Exception as e:
            logger.debug(f"{method.value} failed: {type(e).__name__}: {e}")
            return make_error(msg_id, HANDLER_FAILED, str(e) or type(e).__name__)

    async def run(self, transport: McpTransport, stop_event: asyncio.Event | None = None) -> None:
        """Serve requests until end of input or ``stop_event`` is set."""
        stop_event = stop_event or asyncio.Event()
        logger.info("MCP server ready")

        while not stop_event.is_set():
            try:
                message = await transport.read_message()
            except TransportError as e:
                logger.warning(f"Dropping unparseable frame: {e}")
                await transport.write_message(make_error(None, PARSE_ERROR, f"Parse error: {e}"))
                continue

            if message is None:
                break

            response = await self.handle_message(message)
            if response is not None:
                await transport.write_message(response)

        logger.info("MCP server stopped")

    # Protocol methods

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "protocolVersion": negotiate_protocol_version(params),
            "capabilities": {
                "tools": {"listChanged": False},
                "prompts": {"listChanged": False},
                "resources": {"listChanged": False, "subscribe": False},
            },
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _empty(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": TOOL_DEFINITIONS}

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}

        try:
            tool = ToolName(name)
        except ValueError:
            raise ToolCallError(f"Unknown tool: {name}") from None

        result = await self._tools[tool](arguments)
        if not result.ok:
            raise ToolCallError(result.error)
        return result.to_content()

    # Tools backed by child commands

    async def _run_command(self, *args: str, timeout: float | None = None) -> ToolResult:
        return ToolResult.success(await self.runner.run(list(args), timeout=timeout))

    async def _watch_start(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._run_command("watch-start")

    async def _watch_stop(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._run_command("watch-stop")

    async def _status(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._run_command("status")

    async def _diagnose(self, arguments: dict[str, Any]) -> ToolResult:
        return await self._run_command("diagnose")

    async def _watch_follow(self, arguments: dict[str, Any]) -> ToolResult:
        seconds = arguments.get("seconds", DEFAULT_FOLLOW_SECONDS)
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 1:
            return ToolResult.failure(f"seconds must be a positive integer, got {seconds!r}")
        return await self._run_command(
            "watch-follow",
            "--seconds",
            str(seconds),
            "--no-confirm",
            timeout=seconds + FOLLOW_GRACE_SECONDS,
        )

    async def _draft_issue(self, arguments: dict[str, Any]) -> ToolResult:
        args = ["draft-issue"]
        if arguments.get("include_successful") is True:
            args.append("--include-successful")
        return await self._run_command(*args)

    # Tools answered from the store

    async def _report(self, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult.success(format_report(self.store.read()))

    async def _pending_atoms(self, arguments: dict[str, Any]) -> ToolResult:
        payload = pending_payload(self.store.get_pending())
        return ToolResult.success(json.dumps(payload, separators=(",", ":")))

    async def _record_verdict(self, arguments: dict[str, Any]) -> ToolResult:
        apply_index = arguments.get("apply_index")
        if isinstance(apply_index, bool) or not isinstance(apply_index, int):
            return ToolResult.failure("apply_index is required and must be an integer")
        if "verdicts" not in arguments:
            return ToolResult.failure("verdicts is required")

        try:
            verdicts = validate_atom_verdicts(arguments["verdicts"])
        except ValueError as e:
            return ToolResult.failure(str(e))

        result = self.store.record_verdict(apply_index, verdicts)
        payload = {"ok": result.found, "apply_index": apply_index, "verdict": result.verdict}
        return ToolResult.success(json.dumps(payload, separators=(",", ":")))
