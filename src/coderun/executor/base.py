"""
Base interfaces and dataclasses for process execution.

The runner never touches the operating system directly.  It asks a
:class:`Spawner` for a :class:`ProcessHandle` and talks to the process
through that handle only: it writes input lines, drains the two output
streams, waits for the single exit code and, when a timeout fires, kills
the process.  The production spawner lives in ``asyncio_spawner.py``;
tests substitute in-memory handles.

Isolation of untrusted programs (resource limits, filesystem jails,
network denial) is expected to be provided by the container or VM the
service runs in, not by these classes.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Sequence


@dataclass
class ExecutionResult:
    """Outcome of one compile or run phase.

    Attributes
    ----------
    return_code: int, optional
        Exit status of the process.  Zero indicates success.
    data: str, optional
        Standard output and standard error, interleaved in the order the
        chunks arrived.
    elapsed_ms: float, optional
        Wall-clock time between launch and termination in milliseconds.
    """

    return_code: Optional[int] = None
    data: Optional[str] = None
    elapsed_ms: Optional[float] = None


class ProcessHandle(abc.ABC):
    """A launched subprocess as seen by :class:`~coderun.executor.runner.ProcessRunner`."""

    @abc.abstractmethod
    async def write_input(self, lines: Sequence[str]) -> None:
        """Write ``lines`` to standard input, newline terminated, then close it."""
        raise NotImplementedError

    @abc.abstractmethod
    def stdout_chunks(self) -> AsyncIterator[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def stderr_chunks(self) -> AsyncIterator[str]:
        raise NotImplementedError

    @abc.abstractmethod
    async def wait(self) -> int:
        """Wait for termination and return the exit code."""
        raise NotImplementedError

    @abc.abstractmethod
    def kill(self) -> None:
        """Forcibly terminate the process and anything it started."""
        raise NotImplementedError


class Spawner(abc.ABC):
    """Launches shell commands."""

    @abc.abstractmethod
    async def spawn(self, command: str, cwd: str, with_stdin: bool = False) -> ProcessHandle:
        """Start ``command`` through the shell in ``cwd``.

        Parameters
        ----------
        command: str
            Fully rendered shell command.
        cwd: str
            Working directory of the new process.
        with_stdin: bool, optional
            Open a pipe for standard input.  Otherwise standard input is
            connected to the null device.
        """
        raise NotImplementedError
