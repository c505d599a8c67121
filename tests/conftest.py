"""Shared fixtures and fakes for the test-suite."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

# The API module reads its configuration at import time.
os.environ.setdefault("CODERUN_WORK_DIR", tempfile.mkdtemp(prefix="coderun-tests-"))

from coderun.executor import ExecutionResult, ProcessHandle, Spawner  # noqa: E402
from coderun.storage import LocalToolchainStore  # noqa: E402
from coderun.toolchains import ToolchainRegistry  # noqa: E402


class FakeHandle(ProcessHandle):
    """In-memory process.

    ``script`` is a list of ``(stream, text)`` pairs with ``stream`` being
    ``"out"`` or ``"err"``; chunks are delivered strictly in script order
    across both streams.  With ``hang`` the process never exits until it
    is killed; with ``block_input`` writing stdin never completes.
    """

    def __init__(self, script=(), return_code: int = 0, hang: bool = False, block_input: bool = False) -> None:
        self.script = list(script)
        self.return_code = return_code
        self.hang = hang
        self.block_input = block_input
        self.written: List[str] = []
        self.events: List[str] = []
        self.kill_count = 0
        self._turn = 0
        self._killed = asyncio.Event()

    async def write_input(self, lines: Sequence[str]) -> None:
        self.events.append("write")
        self.written.extend(lines)
        if self.block_input:
            await self._killed.wait()

    def stdout_chunks(self):
        return self._chunks("out")

    def stderr_chunks(self):
        return self._chunks("err")

    async def _chunks(self, stream: str):
        for index, (name, text) in enumerate(self.script):
            if name != stream:
                continue
            while self._turn < index:
                await asyncio.sleep(0)
            self.events.append(f"read:{stream}")
            yield text
            self._turn = index + 1
        if self.hang and stream == "out":
            await self._killed.wait()

    async def wait(self) -> int:
        if self.hang:
            await self._killed.wait()
            return -9
        return self.return_code

    def kill(self) -> None:
        self.kill_count += 1
        self._killed.set()


class FakeSpawner(Spawner):
    """Hands out prepared :class:`FakeHandle` objects and records every spawn."""

    def __init__(self, *handles: FakeHandle) -> None:
        self.handles = list(handles)
        self.calls: List[Dict[str, object]] = []

    async def spawn(self, command: str, cwd: str, with_stdin: bool = False) -> ProcessHandle:
        self.calls.append({"command": command, "cwd": cwd, "with_stdin": with_stdin})
        if not self.handles:
            raise AssertionError(f"unexpected spawn: {command}")
        return self.handles.pop(0)


class FakeRunner:
    """Stands in for :class:`~coderun.executor.ProcessRunner`."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, object]] = []

    async def run(self, command, working_directory, timeout_ms=None, inputs=()) -> ExecutionResult:
        self.calls.append(
            {
                "command": command,
                "working_directory": working_directory,
                "timeout_ms": timeout_ms,
                "inputs": list(inputs),
            }
        )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def toolchain_dir(tmp_path: Path) -> Path:
    path = tmp_path / "toolchains"
    path.mkdir()
    return path


@pytest.fixture
def write_toolchain(toolchain_dir: Path):
    """Write ``<language>.json`` into the temporary toolchain directory."""

    def _write(language: str, **definition) -> Path:
        path = toolchain_dir / f"{language}.json"
        path.write_text(json.dumps(definition), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def registry(toolchain_dir: Path) -> ToolchainRegistry:
    return ToolchainRegistry(LocalToolchainStore(toolchain_dir))


def make_handle(script=(), return_code: int = 0, hang: bool = False, block_input: bool = False) -> FakeHandle:
    return FakeHandle(script=script, return_code=return_code, hang=hang, block_input=block_input)


def result(return_code: Optional[int] = 0, data: Optional[str] = "", elapsed_ms: Optional[float] = 1.0):
    return ExecutionResult(return_code=return_code, data=data, elapsed_ms=elapsed_ms)
