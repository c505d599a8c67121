"""
Run one command to completion or timeout.

:class:`ProcessRunner` launches a command, feeds it input, collects its
combined output and measures how long it ran.  It either returns an
:class:`ExecutionResult` or raises; a run that hit its timeout never
produces a result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Callable, List, Optional, Sequence

from ..errors import ExecutionTimeout, MissingCommand
from .asyncio_spawner import AsyncioSpawner
from .base import ExecutionResult, ProcessHandle, Spawner

logger = logging.getLogger("coderun.executor")

Clock = Callable[[], float]


class ProcessRunner:
    """Execute shell commands through a :class:`Spawner`.

    Parameters
    ----------
    spawner: Spawner, optional
        Launches processes.  Defaults to :class:`AsyncioSpawner`.
    clock: callable, optional
        Monotonic clock returning seconds.  Defaults to
        :func:`time.perf_counter`; tests inject a fake to get
        deterministic ``elapsed_ms`` values.
    """

    def __init__(self, spawner: Optional[Spawner] = None, clock: Clock = time.perf_counter) -> None:
        self.spawner = spawner or AsyncioSpawner()
        self.clock = clock

    async def run(
        self,
        command: str,
        working_directory: str,
        timeout_ms: Optional[float] = None,
        inputs: Sequence[str] = (),
    ) -> ExecutionResult:
        """Run ``command`` in ``working_directory``.

        Input lines are written right after launch while both output pipes
        are drained, so neither a program that blocks on stdin nor one that
        fills its stdout before reading can deadlock the runner.  Writing
        counts against ``timeout_ms``.  Output from stdout and stderr is
        merged in arrival order.

        Raises
        ------
        MissingCommand
            ``command`` is empty.  Nothing is spawned.
        ExecutionTimeout
            The process did not finish within ``timeout_ms``; it has been
            killed and reaped.
        """
        if not command or not command.strip():
            raise MissingCommand()

        lines = list(inputs)
        handle = await self.spawner.spawn(command, working_directory, with_stdin=bool(lines))
        started = self.clock()

        chunks: List[str] = []

        async def _collect(stream: AsyncIterator[str]) -> None:
            async for chunk in stream:
                chunks.append(chunk)

        # The writer is scheduled first so input reaches the process before
        # any output is consumed; the readers drain both pipes meanwhile.
        tasks: List[asyncio.Future] = []
        if lines:
            tasks.append(asyncio.ensure_future(handle.write_input(lines)))
        tasks.append(asyncio.ensure_future(_collect(handle.stdout_chunks())))
        tasks.append(asyncio.ensure_future(_collect(handle.stderr_chunks())))

        async def _finish() -> int:
            await asyncio.gather(*tasks)
            return await handle.wait()

        timeout = timeout_ms / 1000.0 if timeout_ms is not None else None
        try:
            return_code = await asyncio.wait_for(_finish(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Command exceeded %s ms; killing it: %s", timeout_ms, command)
            await self._terminate(handle, tasks)
            raise ExecutionTimeout(timeout_ms) from None
        except BaseException:
            await self._terminate(handle, tasks)
            raise

        elapsed_ms = (self.clock() - started) * 1000.0
        logger.debug("Command exited with %s after %.3f ms: %s", return_code, elapsed_ms, command)
        return ExecutionResult(return_code=return_code, data="".join(chunks), elapsed_ms=elapsed_ms)

    @staticmethod
    async def _terminate(handle: ProcessHandle, tasks: List[asyncio.Future]) -> None:
        handle.kill()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await handle.wait()
