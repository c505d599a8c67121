"""
Process execution for the compile and run phases.

``ProcessRunner`` turns a rendered command into an ``ExecutionResult``.
It delegates the actual launch to a ``Spawner``; ``AsyncioSpawner`` is the
default implementation.  Alternative spawners (remote workers, container
runtimes) can be added by implementing the interfaces in ``base.py``.
"""

from .base import ExecutionResult, ProcessHandle, Spawner
from .asyncio_spawner import AsyncioProcessHandle, AsyncioSpawner
from .runner import ProcessRunner

__all__ = [
    "ExecutionResult",
    "ProcessHandle",
    "Spawner",
    "AsyncioProcessHandle",
    "AsyncioSpawner",
    "ProcessRunner",
]
