"""Bounded subprocess execution for speech engine commands.

Every engine operation (synthesize, enumerate voices, record, recognize) is a
single child process. This module runs it without a shell, awaits it on the
event loop, and guarantees the child is killed and reaped when its wall-clock
limit expires.
"""

import asyncio
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from loguru import logger

from native_speech_server.domain.errors import EngineExecutionError, EngineTimeoutError


@dataclass(frozen=True)
class EngineCommand:
    """An opaque engine invocation built by an engine adapter.

    Attributes:
        name: Short label used in logs and error messages.
        argv: Program and arguments, passed to the OS without a shell.
        env: Extra environment variables for the child. Caller-supplied text
            travels here rather than in ``argv``.
        input: Optional bytes written to the child's standard input.

    """

    name: str
    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)
    input: bytes | None = None


class EngineInvoker:
    """Runs engine commands as subprocesses with a hard timeout."""

    def __init__(self, kill_wait: float = 5.0):
        """Initialize the invoker.

        Args:
            kill_wait: Seconds to wait for a killed child to be reaped.

        """
        self._kill_wait = kill_wait

    async def invoke(self, command: EngineCommand, timeout: float) -> str:
        """Run ``command`` and return its stripped standard output.

        Args:
            command: The command to run.
            timeout: Wall-clock limit in seconds.

        Returns:
            Standard output with surrounding whitespace removed.

        Raises:
            EngineTimeoutError: If the command ran longer than ``timeout``.
            EngineExecutionError: If it could not be started or exited non-zero.

        """
        env = {**os.environ, **command.env}
        stdin = asyncio.subprocess.PIPE if command.input is not None else asyncio.subprocess.DEVNULL
        logger.debug(f"Running engine command '{command.name}' (timeout {timeout}s)")

        try:
            process = await asyncio.create_subprocess_exec(
                *command.argv,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise EngineExecutionError(
                f"Failed to start speech engine for '{command.name}': {e}"
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(command.input), timeout=timeout
            )
        except asyncio.TimeoutError:
            await self._terminate(process, command)
            raise EngineTimeoutError(
                f"Engine command '{command.name}' timed out after {timeout}s", timeout=timeout
            ) from None
        except asyncio.CancelledError:
            # Caller went away; never leave the child running
            await self._terminate(process, command)
            raise

        out = stdout.decode("utf-8", errors="replace").strip()
        if process.returncode != 0:
            diagnostic = stderr.decode("utf-8", errors="replace").strip() or out
            logger.error(
                f"Engine command '{command.name}' exited with code {process.returncode}: "
                f"{diagnostic}"
            )
            raise EngineExecutionError(
                f"Speech engine execution failed ({command.name}): "
                f"{diagnostic or f'exit code {process.returncode}'}",
                returncode=process.returncode,
            )

        logger.debug(f"Engine command '{command.name}' finished")
        return out

    async def _terminate(self, process: asyncio.subprocess.Process, command: EngineCommand) -> None:
        """Kill the child and wait until it has been reaped."""
        if process.returncode is None:
            logger.warning(f"Killing engine command '{command.name}' (PID {process.pid})")
            try:
                process.kill()
            except ProcessLookupError:
                pass
        try:
            await asyncio.wait_for(process.wait(), timeout=self._kill_wait)
        except asyncio.TimeoutError:
            logger.error(
                f"Engine command '{command.name}' (PID {process.pid}) did not exit after kill"
            )
