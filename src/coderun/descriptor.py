"""Execution descriptors.

A descriptor is everything one compile-and-run orchestration needs: the
language, the command templates, the working directory, the timeout, the
template variables and the pending input lines.  It can be built from a
raw JSON string or from typed :class:`~coderun.models.CompilerOptions`;
both paths go through the same pydantic validation so they end up with
the same invariants.

Merging toolchain defaults never mutates a descriptor; :func:`merge_toolchain`
returns a new one.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import ConfigurationError
from .models import CompilerOptions, Toolchain, stringify

DEFAULT_WORKING_DIRECTORY = "./"


@dataclass(frozen=True)
class ExecutionDescriptor:
    language: str
    compile_command: Optional[str] = None
    run_command: Optional[str] = None
    working_directory: Optional[str] = None
    execution_timeout: Optional[float] = None
    variables: Dict[str, str] = field(default_factory=dict)
    inputs: Tuple[str, ...] = ()

    def with_defaults(self) -> "ExecutionDescriptor":
        """Return a copy whose working directory falls back to ``./``."""
        if self.working_directory:
            return self
        return dataclasses.replace(self, working_directory=DEFAULT_WORKING_DIRECTORY)


def descriptor_from_options(options: Union[CompilerOptions, Mapping[str, Any]]) -> ExecutionDescriptor:
    """Validate ``options`` and copy them field by field into a descriptor."""
    if not isinstance(options, CompilerOptions):
        try:
            options = CompilerOptions.model_validate(options)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid compiler options: {exc}") from exc

    variables: Dict[str, str] = {}
    for name, value in options.variables.items():
        name = name.strip()
        if name:
            variables[name] = stringify(value)

    return ExecutionDescriptor(
        language=options.language,
        compile_command=options.compile_command,
        run_command=options.run_command,
        working_directory=options.working_directory,
        execution_timeout=options.execution_timeout,
        variables=variables,
        inputs=tuple(options.inputs),
    )


def descriptor_from_string(raw: str) -> ExecutionDescriptor:
    """Parse a JSON document into a descriptor."""
    try:
        options = CompilerOptions.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid compiler configuration: {exc}") from exc
    return descriptor_from_options(options)


def merge_toolchain(descriptor: ExecutionDescriptor, toolchain: Toolchain) -> ExecutionDescriptor:
    """Fill ``descriptor`` from ``toolchain``.

    The toolchain is authoritative for the working directory and both
    command templates.  Its timeout is only used when the descriptor has
    none of its own.
    """
    timeout = descriptor.execution_timeout
    if timeout is None:
        timeout = toolchain.execution_timeout
    return dataclasses.replace(
        descriptor,
        working_directory=toolchain.working_directory,
        compile_command=toolchain.compile_command,
        run_command=toolchain.run_command,
        execution_timeout=timeout,
    )
