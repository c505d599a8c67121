"""Pydantic models for configuration records and HTTP bodies.

Toolchain definition files and raw compiler configuration use camelCase
keys (``compileCommand``, ``runCommand`` ...).  The models accept those
aliases as well as the snake_case field names.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

VariableValue = Union[bool, int, float, str]


def stringify(value: VariableValue) -> str:
    """Render a variable value the way it appears on a command line."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Toolchain(BaseModel):
    """Defaults for one language, as returned by the toolchain registry."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    working_directory: str = Field(
        default="./",
        validation_alias=AliasChoices("working_directory", "workingDirectory", "filePath"),
    )
    compile_command: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("compile_command", "compileCommand"),
    )
    run_command: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("run_command", "runCommand"),
    )
    execution_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("execution_timeout", "executionTimeout"),
        description="Default timeout in milliseconds.",
    )
    source_file: str = Field(
        default="main",
        validation_alias=AliasChoices("source_file", "sourceFile"),
        description="File name given to submitted sources.",
    )

    @field_validator("compile_command", "run_command")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class CompilerOptions(BaseModel):
    """Typed form of a compile-and-run request."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    language: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("language", "compilerName"),
    )
    compile_command: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("compile_command", "compileCommand")
    )
    run_command: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("run_command", "runCommand")
    )
    working_directory: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("working_directory", "workingDirectory", "filePath"),
    )
    execution_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("execution_timeout", "executionTimeout"),
    )
    variables: Dict[str, VariableValue] = Field(default_factory=dict)
    inputs: List[str] = Field(default_factory=list)

    @field_validator("language")
    @classmethod
    def _strip_language(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("language must not be blank")
        return value


class RunRequest(BaseModel):
    """Request body for ``POST /v1/run``."""

    language: str = Field(..., min_length=1, description="Toolchain identifier, e.g. 'python' or 'c'.")
    source: Optional[str] = Field(
        default=None,
        description="Program source.  Written to a temporary directory exposed as {dir}/{filename}.",
    )
    filename: Optional[str] = Field(
        default=None, description="File name for the source.  Defaults to the toolchain's source file name."
    )
    variables: Dict[str, VariableValue] = Field(default_factory=dict)
    inputs: List[str] = Field(default_factory=list, description="Lines written to the program's stdin.")
    execution_timeout: Optional[float] = Field(
        default=None, gt=0, description="Timeout in milliseconds; overrides the toolchain default."
    )


class RunResponse(BaseModel):
    """Response body for ``POST /v1/run``."""

    return_code: Optional[int] = None
    data: Optional[str] = None
    elapsed_ms: Optional[float] = None


class ToolchainList(BaseModel):
    """Languages the service can compile and run."""

    languages: List[str] = Field(default_factory=list)
