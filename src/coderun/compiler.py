"""Compile-and-run orchestration.

:class:`Compiler` drives one execution through these states::

    IDLE -> RESOLVING_TOOLCHAIN -> COMPILING -> RUNNING -> DONE
                 \\                    \\           \\
                  +--------------------+-----------+--> FAILED

The compile phase is skipped for toolchains without a compile command
(interpreted languages).  The run phase happens only when there was no
compile step or the compile step exited with ``SUCCESS_CODE``.  A failed
compilation is not an error: its result, including the compiler
diagnostics, is returned as the outcome.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Any, Mapping, Optional, Sequence, Union

from .command import CommandBuilder
from .descriptor import (
    ExecutionDescriptor,
    descriptor_from_options,
    descriptor_from_string,
    merge_toolchain,
)
from .errors import CompilationError, MissingRunCommand
from .executor import ExecutionResult, ProcessRunner
from .models import CompilerOptions, VariableValue, stringify
from .toolchains import ToolchainRegistry

logger = logging.getLogger("coderun.compiler")


class CompilerState(str, enum.Enum):
    IDLE = "idle"
    RESOLVING_TOOLCHAIN = "resolving_toolchain"
    COMPILING = "compiling"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class Compiler:
    """Compile and run one program.

    Parameters
    ----------
    config: str or CompilerOptions or mapping
        Either a raw JSON document or typed options.
    registry: ToolchainRegistry, optional
        Source of toolchain defaults.  Defaults to the bundled toolchains.
    runner: ProcessRunner, optional
        Runs the compile and run commands.
    """

    SUCCESS_CODE: int = 0

    def __init__(
        self,
        config: Union[str, CompilerOptions, Mapping[str, Any]],
        registry: Optional[ToolchainRegistry] = None,
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        if isinstance(config, str):
            self.descriptor = descriptor_from_string(config)
        else:
            self.descriptor = descriptor_from_options(config)
        self.registry = registry or ToolchainRegistry()
        self.runner = runner or ProcessRunner()
        self.state = CompilerState.IDLE

    @property
    def language(self) -> str:
        return self.descriptor.language

    def set_execution_timeout(self, milliseconds: float) -> None:
        if milliseconds <= 0:
            raise ValueError(f"execution timeout must be positive, got {milliseconds}")
        self._update(execution_timeout=milliseconds)

    def put_variable(self, name: str, value: VariableValue) -> None:
        name = name.strip()
        if not name:
            return
        variables = dict(self.descriptor.variables)
        variables[name] = stringify(value)
        self._update(variables=variables)

    def set_inputs(self, *inputs: str) -> None:
        """Replace the lines written to the program's stdin in the run phase."""
        self._update(inputs=tuple(inputs))

    def _update(self, **changes: Any) -> None:
        if self.state is not CompilerState.IDLE:
            raise RuntimeError("Compiler configuration cannot change once execution has started")
        self.descriptor = dataclasses.replace(self.descriptor, **changes)

    def _transition(self, state: CompilerState) -> None:
        logger.debug("[%s] %s -> %s", self.language, self.state.value, state.value)
        self.state = state

    async def execute(self) -> ExecutionResult:
        """Resolve the toolchain, compile if needed, then run.

        Returns the run result, or the compile result when compilation
        exited with a non-success code.  Any error aborts the whole
        execution and is raised unchanged.
        """
        if self.state is not CompilerState.IDLE:
            raise RuntimeError("Compiler.execute() may only be called once")
        try:
            return await self._execute()
        except BaseException:
            self._transition(CompilerState.FAILED)
            raise

    async def _execute(self) -> ExecutionResult:
        self.descriptor = self.descriptor.with_defaults()
        self._transition(CompilerState.RESOLVING_TOOLCHAIN)
        toolchain = await self.registry.resolve(self.language)
        self.descriptor = merge_toolchain(self.descriptor, toolchain)

        self._transition(CompilerState.COMPILING)
        compile_output = await self._compile()

        if self._compiled_ok(compile_output) and self.descriptor.run_command:
            self._transition(CompilerState.RUNNING)
            result = await self._run(self.descriptor.run_command, self.descriptor.inputs)
            logger.info(
                "[%s] Run finished: return_code=%s, elapsed_ms=%s",
                self.language,
                result.return_code,
                result.elapsed_ms,
            )
        elif not self.descriptor.run_command:
            raise MissingRunCommand()
        elif self._compile_failed(compile_output):
            logger.info(
                "[%s] Compilation failed with return_code=%s; skipping run",
                self.language,
                compile_output.return_code,
            )
            result = compile_output
        else:
            raise CompilationError("Failed to compile.")

        self._transition(CompilerState.DONE)
        return result

    def _compiled_ok(self, output: ExecutionResult) -> bool:
        return output.return_code == self.SUCCESS_CODE

    def _compile_failed(self, output: ExecutionResult) -> bool:
        return output.return_code != self.SUCCESS_CODE

    async def _compile(self) -> ExecutionResult:
        if not self.descriptor.compile_command:
            return ExecutionResult(return_code=self.SUCCESS_CODE)
        return await self._run(self.descriptor.compile_command)

    async def _run(self, template: str, inputs: Sequence[str] = ()) -> ExecutionResult:
        builder = CommandBuilder(template).put_variables(self.descriptor.variables)
        missing = builder.unresolved()
        if missing:
            logger.warning("[%s] Unresolved placeholders in %r: %s", self.language, template, missing)
        command = builder.build_command()
        logger.debug("[%s] Executing in %s: %s", self.language, self.descriptor.working_directory, command)
        return await self.runner.run(
            command,
            self.descriptor.working_directory,
            self.descriptor.execution_timeout,
            inputs,
        )
