"""Subprocess execution for probe commands.

Handles the probe process lifecycle: spawn, capture, deadline, cleanup.
Every failure mode is returned as data in a ProbeOutcome; nothing here
raises to the caller for a failed, missing or hung probe.

Security Note: Uses asyncio.create_subprocess_exec() which is shell-injection
safe - arguments are passed as a list, not interpolated into a shell command.

Process tree cleanup: the probe is started in its own process group so that
a timeout kill reaches every process it spawned, not only the direct child.
How the group is created and killed is platform specific and lives in a
ProcessTreeTerminator chosen when the executor is built:

    executor = ProbeExecutor()  # picks SignalGroupTerminator on POSIX
    outcome = await executor.execute(20.0, "opencode", ["run", "--model", m, prompt])
    if outcome.timed_out:
        ...
"""

from __future__ import annotations

import asyncio
import os
import signal
import subprocess
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from llm_radar.core.constants import (
    SIGNAL_EXIT_CODE_BASE,
    START_FAILURE_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
)
from llm_radar.core.errors import ProbeError, ProbeStartError, ProbeTimeoutError
from llm_radar.core.logging import get_logger

_logger = get_logger("process")

READ_CHUNK_BYTES = 8192


@dataclass
class ProbeOutcome:
    """Normalized result of one probe invocation."""

    output: str
    """Captured output, stdout and stderr merged by default (partial on timeout)."""

    exit_code: int
    """0 on success, 124 when killed on timeout, 1 when it could not start."""

    error: ProbeError | None = None
    """Why the probe did not complete normally, if it did not."""

    duration_seconds: float = 0.0
    """Wall-clock time from spawn to exit."""

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, ProbeTimeoutError)


class ProcessTreeTerminator(ABC):
    """Platform strategy for isolating and killing a probe's process tree."""

    @abstractmethod
    def spawn_options(self) -> dict[str, Any]:
        """Extra keyword arguments for create_subprocess_exec."""

    @abstractmethod
    def terminate(self, process: asyncio.subprocess.Process) -> None:
        """Forcefully kill the process and everything it spawned."""


class SignalGroupTerminator(ProcessTreeTerminator):
    """POSIX: new session per probe, SIGKILL sent to the whole group."""

    def spawn_options(self) -> dict[str, Any]:
        return {"start_new_session": True}

    def terminate(self, process: asyncio.subprocess.Process) -> None:
        try:
            # start_new_session makes the child its own group leader
            os.killpg(process.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except OSError as e:
            _logger.warning("process.killpg_failed", pid=process.pid, error=str(e))

        try:
            process.kill()
        except ProcessLookupError:
            pass


class HandleTerminator(ProcessTreeTerminator):
    """Platforms without process groups: best-effort kill of the process handle."""

    def spawn_options(self) -> dict[str, Any]:
        flags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        return {"creationflags": flags} if flags else {}

    def terminate(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass


def default_terminator() -> ProcessTreeTerminator:
    """Terminator for the current platform."""
    if os.name == "posix":
        return SignalGroupTerminator()
    return HandleTerminator()


def exit_code_from_returncode(returncode: int | None) -> int:
    """Translate an asyncio returncode into the probe's integer exit code.

    A negative returncode means death by signal and maps to 128 + signal,
    the shell convention.
    """
    if returncode is None:
        return START_FAILURE_EXIT_CODE
    if returncode < 0:
        return SIGNAL_EXIT_CODE_BASE - returncode
    return returncode


class ProbeExecutor:
    """Runs probe commands with a deadline and guaranteed cleanup.

    Features:
    - Process group isolation via the platform terminator
    - Combined stdout/stderr capture into memory (unbounded; trimming
      happens later)
    - Deadline kill of the whole process tree, then wait for exit
    - Cleanup on cancellation and unexpected exceptions to prevent leaks
    """

    def __init__(self, terminator: ProcessTreeTerminator | None = None) -> None:
        self.terminator = terminator or default_terminator()

    async def execute(
        self,
        timeout_seconds: float,
        command: str,
        args: Sequence[str] = (),
        merge_stderr: bool = True,
    ) -> ProbeOutcome:
        """Run ``command`` with ``args`` and race it against the deadline.

        Args:
            timeout_seconds: Deadline for the whole invocation.
            command: Executable name or path.
            args: Arguments, passed as a list (no shell).
            merge_stderr: Capture stderr interleaved with stdout. When False
                stderr is discarded and only stdout is returned.

        Returns:
            ProbeOutcome with captured output, exit code and error.
        """
        start_time = time.monotonic()

        _logger.debug(
            "process.starting",
            command=command,
            args_count=len(args),
            timeout_seconds=timeout_seconds,
        )

        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.DEVNULL,
                **self.terminator.spawn_options(),
            )
        except OSError as e:
            duration = time.monotonic() - start_time
            _logger.error("process.start_failed", command=command, error=str(e))
            return ProbeOutcome(
                output="",
                exit_code=START_FAILURE_EXIT_CODE,
                error=ProbeStartError(f"Cannot start {command}: {e}"),
                duration_seconds=duration,
            )

        chunks: list[bytes] = []
        try:
            await asyncio.wait_for(self._collect(process, chunks), timeout=timeout_seconds)
        except TimeoutError:
            await self._kill_and_reap(process)
            duration = time.monotonic() - start_time
            _logger.warning(
                "process.timeout",
                pid=process.pid,
                timeout_seconds=timeout_seconds,
                duration_seconds=duration,
            )
            return ProbeOutcome(
                output=_decode(chunks),
                exit_code=TIMEOUT_EXIT_CODE,
                error=ProbeTimeoutError(timeout_seconds),
                duration_seconds=duration,
            )
        except asyncio.CancelledError:
            _logger.warning("process.killing_on_cancel", pid=process.pid)
            self.terminator.terminate(process)
            raise
        except Exception as e:
            await self._kill_and_reap(process)
            duration = time.monotonic() - start_time
            _logger.exception("process.exception", pid=process.pid, error=str(e))
            return ProbeOutcome(
                output=_decode(chunks),
                exit_code=START_FAILURE_EXIT_CODE,
                error=ProbeError(str(e)),
                duration_seconds=duration,
            )

        duration = time.monotonic() - start_time
        exit_code = exit_code_from_returncode(process.returncode)
        _logger.debug(
            "process.completed",
            pid=process.pid,
            exit_code=exit_code,
            duration_seconds=duration,
            output_bytes=sum(len(c) for c in chunks),
        )
        return ProbeOutcome(
            output=_decode(chunks),
            exit_code=exit_code,
            duration_seconds=duration,
        )

    @staticmethod
    async def _collect(process: asyncio.subprocess.Process, chunks: list[bytes]) -> None:
        """Read the merged output stream to EOF, then wait for exit."""
        if process.stdout is not None:
            while True:
                chunk = await process.stdout.read(READ_CHUNK_BYTES)
                if not chunk:
                    break
                chunks.append(chunk)
        await process.wait()

    async def _kill_and_reap(self, process: asyncio.subprocess.Process) -> None:
        """Kill the process tree and wait until the child has really exited.

        The group is signalled even when the direct child already exited:
        a grandchild holding the output pipe open keeps the group alive.
        """
        self.terminator.terminate(process)
        await process.wait()


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
