"""
Spawner backed by ``asyncio`` subprocesses.

Commands are run through the system shell so toolchain templates may use
redirections and ``&&`` chains.  On POSIX each command starts a new
session, which makes the shell the leader of its own process group; a
kill is then delivered to the whole group so compiler drivers or programs
started by the shell do not outlive a timeout.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
from typing import AsyncIterator, Optional, Sequence

from .base import ProcessHandle, Spawner

logger = logging.getLogger("coderun.executor")

CHUNK_SIZE = 4096


class AsyncioProcessHandle(ProcessHandle):
    """Wraps an :class:`asyncio.subprocess.Process`."""

    def __init__(self, process: asyncio.subprocess.Process, chunk_size: int = CHUNK_SIZE) -> None:
        self._process = process
        self._chunk_size = chunk_size
        self._killed = False

    @property
    def pid(self) -> int:
        return self._process.pid

    async def write_input(self, lines: Sequence[str]) -> None:
        stdin = self._process.stdin
        if stdin is None:
            return
        try:
            for line in lines:
                stdin.write((line + "\n").encode("utf-8"))
            await stdin.drain()
            stdin.close()
            await stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            # The program exited (or closed stdin) before consuming its input.
            logger.debug("stdin of pid %s closed before all input was written", self.pid)

    def stdout_chunks(self) -> AsyncIterator[str]:
        return self._read(self._process.stdout)

    def stderr_chunks(self) -> AsyncIterator[str]:
        return self._read(self._process.stderr)

    async def _read(self, stream: Optional[asyncio.StreamReader]) -> AsyncIterator[str]:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(self._chunk_size)
            if not chunk:
                tail = decoder.decode(b"", final=True)
                if tail:
                    yield tail
                return
            text = decoder.decode(chunk)
            if text:
                yield text

    async def wait(self) -> int:
        return await self._process.wait()

    def kill(self) -> None:
        # The shell may already have exited while children it started still
        # hold the output pipes, so the group is signalled regardless.
        if self._killed:
            return
        self._killed = True
        try:
            if os.name == "posix":
                os.killpg(self._process.pid, signal.SIGKILL)
            else:
                self._process.kill()
        except ProcessLookupError:
            logger.debug("pid %s exited before it could be killed", self.pid)


class AsyncioSpawner(Spawner):
    """Default spawner used outside of tests."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    async def spawn(self, command: str, cwd: str, with_stdin: bool = False) -> ProcessHandle:
        kwargs = {}
        if os.name == "posix":
            kwargs["start_new_session"] = True
        process = await asyncio.create_subprocess_shell(
            command,
            cwd=cwd,
            stdin=asyncio.subprocess.PIPE if with_stdin else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **kwargs,
        )
        logger.debug("Spawned pid %s in %s: %s", process.pid, cwd, command)
        return AsyncioProcessHandle(process, chunk_size=self.chunk_size)
