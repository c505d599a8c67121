"""Compile-and-run service package.

This package compiles and runs user-supplied programs in any language with
a toolchain definition, capturing the combined output, the exit status and
the elapsed time.  It can be embedded as a library (:class:`Compiler`) or
deployed as a microservice via the FastAPI application in ``api``.

The top‑level modules include:

* ``config`` – configuration handling for environment variables.
* ``models`` – Pydantic models for toolchains, options and HTTP bodies.
* ``command`` – ``{name}`` placeholder rendering for command templates.
* ``descriptor`` – building descriptors and merging toolchain defaults.
* ``storage`` – pluggable backends holding toolchain definitions.
* ``toolchains`` – the async toolchain registry.
* ``executor`` – subprocess spawning and the process runner.
* ``compiler`` – the compile/run state machine.
* ``api`` – FastAPI application exposing HTTP endpoints.
"""

from .compiler import Compiler, CompilerState
from .errors import (
    CoderunError,
    CompilationError,
    ConfigurationError,
    ExecutionTimeout,
    MissingCommand,
    MissingRunCommand,
    ToolchainLoadError,
)
from .executor import ExecutionResult, ProcessRunner
from .models import CompilerOptions, Toolchain
from .toolchains import ToolchainRegistry

__all__ = [
    "Compiler",
    "CompilerState",
    "CompilerOptions",
    "Toolchain",
    "ToolchainRegistry",
    "ExecutionResult",
    "ProcessRunner",
    "CoderunError",
    "CompilationError",
    "ConfigurationError",
    "ExecutionTimeout",
    "MissingCommand",
    "MissingRunCommand",
    "ToolchainLoadError",
]
