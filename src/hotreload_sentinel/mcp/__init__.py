"""MCP stdio server: transport, tool catalog and dispatch."""

from hotreload_sentinel.mcp.runner import CommandError, CommandRunner
from hotreload_sentinel.mcp.server import McpServer, Method
from hotreload_sentinel.mcp.tools import TOOL_DEFINITIONS, ToolName, ToolResult
from hotreload_sentinel.mcp.transport import Framing, McpTransport, TransportError, open_stdio

__all__ = [
    "TOOL_DEFINITIONS",
    "CommandError",
    "CommandRunner",
    "Framing",
    "McpServer",
    "McpTransport",
    "Method",
    "ToolName",
    "ToolResult",
    "TransportError",
    "open_stdio",
]
