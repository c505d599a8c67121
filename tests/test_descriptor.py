from __future__ import annotations

import json

import pytest

from coderun.descriptor import (
    ExecutionDescriptor,
    descriptor_from_options,
    descriptor_from_string,
    merge_toolchain,
)
from coderun.errors import ConfigurationError
from coderun.models import CompilerOptions, Toolchain


def test_string_and_options_forms_agree():
    fields = {
        "language": "c",
        "compile_command": "cc {file}",
        "run_command": "./a.out",
        "execution_timeout": 500,
        "variables": {" file ": "main.c", "  ": "dropped", "opt": 2, "fast": False},
        "inputs": ["1", "2"],
    }
    from_string = descriptor_from_string(json.dumps(fields))
    from_options = descriptor_from_options(CompilerOptions(**fields))

    assert from_string == from_options
    assert from_string.variables == {"file": "main.c", "opt": "2", "fast": "false"}
    assert from_string.inputs == ("1", "2")


def test_camel_case_keys_are_accepted():
    raw = json.dumps(
        {
            "compilerName": "java",
            "compileCommand": "javac {file}",
            "runCommand": "java Main",
            "filePath": "/src",
            "executionTimeout": 3000,
        }
    )
    descriptor = descriptor_from_string(raw)
    assert descriptor.language == "java"
    assert descriptor.working_directory == "/src"
    assert descriptor.execution_timeout == 3000


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        json.dumps({"run_command": "x"}),
        json.dumps({"language": "   "}),
        json.dumps({"language": "py", "execution_timeout": 0}),
        json.dumps({"language": "py", "unexpected": 1}),
    ],
)
def test_invalid_configuration_is_rejected(raw):
    with pytest.raises(ConfigurationError):
        descriptor_from_string(raw)


def test_mapping_options_are_validated():
    with pytest.raises(ConfigurationError):
        descriptor_from_options({"language": "py", "execution_timeout": -1})


def test_with_defaults_sets_working_directory():
    assert ExecutionDescriptor(language="py").with_defaults().working_directory == "./"
    kept = ExecutionDescriptor(language="py", working_directory="/src")
    assert kept.with_defaults() is kept


def test_merge_takes_commands_from_toolchain_and_keeps_user_timeout():
    descriptor = ExecutionDescriptor(
        language="c",
        compile_command="user compile",
        run_command="user run",
        working_directory="/user",
        execution_timeout=100,
        variables={"file": "main.c"},
        inputs=("1",),
    )
    toolchain = Toolchain(working_directory="/tc", run_command="./out", execution_timeout=9000)

    merged = merge_toolchain(descriptor, toolchain)

    assert merged.working_directory == "/tc"
    assert merged.compile_command is None
    assert merged.run_command == "./out"
    assert merged.execution_timeout == 100
    assert merged.variables == {"file": "main.c"}
    assert merged.inputs == ("1",)
    # the original is left untouched
    assert descriptor.run_command == "user run"


def test_merge_fills_missing_timeout():
    merged = merge_toolchain(ExecutionDescriptor(language="py"), Toolchain(execution_timeout=750))
    assert merged.execution_timeout == 750
