"""Run sentinel CLI commands as child processes with a hard timeout."""

import asyncio
import contextlib
import logging
import os
import signal
import sys

from hotreload_sentinel.config import COMMAND_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when a child command fails to start, exits non-zero or times out."""


class CommandRunner:
    """Invokes ``<prefix> <command> [args...]`` and captures stdout."""

    def __init__(self, command_prefix: list[str], timeout: float = COMMAND_TIMEOUT_SECONDS):
        self.command_prefix = command_prefix
        self.timeout = timeout

    @staticmethod
    def _kill_tree(process: asyncio.subprocess.Process) -> None:
        if sys.platform != "win32":
            with contextlib.suppress(ProcessLookupError, PermissionError):
                os.killpg(process.pid, signal.SIGKILL)
                return
        with contextlib.suppress(ProcessLookupError):
            process.kill()

    async def run(self, args: list[str], timeout: float | None = None) -> str:
        """Run a command and return its trimmed stdout.

        Args:
            args: Subcommand and its arguments.
            timeout: Seconds before the whole process group is killed.

        Raises:
            CommandError: On spawn failure, non-zero exit or timeout.
        """
        timeout = self.timeout if timeout is None else timeout
        cmd = [*self.command_prefix, *args]
        command = args[0] if args else ""
        logger.debug(f"Running command: {' '.join(cmd)}")

        kwargs: dict = {}
        if sys.platform != "win32":
            kwargs["start_new_session"] = True

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **kwargs,
            )
        except OSError as e:
            raise CommandError(f"Failed to start command '{command}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            self._kill_tree(process)
            await process.wait()
            raise CommandError(f"Command '{command}' timed out after {timeout:g}s.") from None

        out = stdout.decode("utf-8", errors="replace").strip()
        err = stderr.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            detail = err or out
            raise CommandError(
                f"Command '{command}' failed (exit={process.returncode}). {detail}".strip()
            )
        return out
