"""Stdio JSON-RPC transport with framing auto-detection.

Clients either send one JSON object per line or LSP-style
``Content-Length: N`` framed bodies. The first non-blank line decides which,
and replies use the same framing for the rest of the connection.
"""

import asyncio
import json
import logging
import sys
from enum import Enum
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)

STDIO_READ_LIMIT = 16 * 1024 * 1024


class TransportError(Exception):
    """Raised when an incoming frame cannot be parsed."""


class Framing(str, Enum):
    """Wire framing selected for a connection."""

    JSONL = "jsonl"
    CONTENT_LENGTH = "content-length"


class McpTransport:
    """Reads and writes JSON-RPC messages over a byte stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: BinaryIO):
        self.reader = reader
        self.writer = writer
        self.framing: Framing | None = None

    async def _readline(self) -> str | None:
        try:
            raw = await self.reader.readline()
        except (ValueError, asyncio.LimitOverrunError) as e:
            raise TransportError(f"Line too long: {e}") from e
        if not raw:
            return None
        return raw.decode("utf-8", errors="replace")

    async def _next_nonblank_line(self) -> str | None:
        while True:
            line = await self._readline()
            if line is None or line.strip():
                return line

    @staticmethod
    def _decode(text: str) -> dict[str, Any]:
        try:
            message = json.loads(text)
        except json.JSONDecodeError as e:
            raise TransportError(f"Invalid JSON: {e}") from e
        if not isinstance(message, dict):
            raise TransportError("Message is not a JSON object")
        return message

    async def read_message(self) -> dict[str, Any] | None:
        """Read the next message.

        Returns:
            The decoded JSON object, or None at end of stream.

        Raises:
            TransportError: If the frame is malformed.
        """
        line = await self._next_nonblank_line()
        if line is None:
            return None

        if self.framing is None:
            self.framing = Framing.JSONL if line.lstrip().startswith("{") else Framing.CONTENT_LENGTH
            logger.debug(f"Detected {self.framing.value} framing")

        if self.framing == Framing.JSONL:
            return self._decode(line.strip())
        return await self._read_framed_body(line)

    async def _read_framed_body(self, first_line: str) -> dict[str, Any]:
        headers: dict[str, str] = {}
        line: str | None = first_line
        while line is not None and line.strip():
            name, sep, value = line.partition(":")
            if sep:
                headers[name.strip().lower()] = value.strip()
            line = await self._readline()

        length = headers.get("content-length", "")
        if not length.isdigit():
            raise TransportError("Missing Content-Length header")

        try:
            body = await self.reader.readexactly(int(length))
        except asyncio.IncompleteReadError as e:
            raise TransportError("Incomplete message body") from e
        return self._decode(body.decode("utf-8", errors="replace"))

    async def write_message(self, message: dict[str, Any]) -> None:
        """Write a message using the detected framing (JSONL before detection)."""
        data = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        if self.framing == Framing.CONTENT_LENGTH:
            self.writer.write(f"Content-Length: {len(data)}\r\n\r\n".encode("ascii"))
            self.writer.write(data)
        else:
            self.writer.write(data + b"\n")
        self.writer.flush()


async def open_stdio() -> McpTransport:
    """Wire a transport to this process's stdin/stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STDIO_READ_LIMIT)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return McpTransport(reader, sys.stdout.buffer)
