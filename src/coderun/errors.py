"""Exception hierarchy for the compile-and-run core.

Every failure that aborts an orchestration is raised as a subclass of
:class:`CoderunError` so that callers (such as the HTTP layer) can map the
whole family in one place.  Non-zero exit codes from a compiler or a user
program are *not* errors; they are reported in the
:class:`~coderun.executor.ExecutionResult`.
"""

from __future__ import annotations

from typing import Optional


class CoderunError(Exception):
    """Base class for all errors raised by ``coderun``."""


class ConfigurationError(CoderunError):
    """Raised when raw configuration or typed options cannot be parsed."""


class ToolchainLoadError(CoderunError):
    """Raised when a toolchain definition cannot be found or loaded."""

    def __init__(self, language: str, reason: Optional[str] = None) -> None:
        self.language = language
        self.reason = reason
        message = f"Unable to load toolchain '{language}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CompilationError(CoderunError):
    """Raised when the compile/run state machine reaches a failure state."""


class MissingRunCommand(CompilationError):
    """Raised when no run command is available after toolchain resolution."""

    def __init__(self) -> None:
        super().__init__("runCommand not found.")


class MissingCommand(CoderunError):
    """Raised by the process runner when asked to run an empty command."""

    def __init__(self) -> None:
        super().__init__("No command to execute.")


class ExecutionTimeout(CoderunError, TimeoutError):
    """Raised when a phase exceeds its allotted wall-clock time.

    The subprocess has already been killed when this is raised.
    """

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Execution timed out after {timeout_ms:g} ms.")
