from __future__ import annotations

import pytest

from coderun.errors import ToolchainLoadError
from coderun.storage import BUILTIN_TOOLCHAIN_DIR, LocalToolchainStore
from coderun.toolchains import ToolchainRegistry


@pytest.mark.asyncio
async def test_resolve_reads_camel_case_definition(write_toolchain, registry):
    write_toolchain(
        "c",
        workingDirectory="/build",
        compileCommand="cc {file}",
        runCommand="./a.out",
        executionTimeout=4000,
    )

    toolchain = await registry.resolve("c")

    assert toolchain.working_directory == "/build"
    assert toolchain.compile_command == "cc {file}"
    assert toolchain.run_command == "./a.out"
    assert toolchain.execution_timeout == 4000


@pytest.mark.asyncio
async def test_blank_compile_command_means_no_compile_step(write_toolchain, registry):
    write_toolchain("py", compileCommand="  ", runCommand="python3 {file}")
    assert (await registry.resolve("py")).compile_command is None


@pytest.mark.asyncio
async def test_unknown_language(registry):
    with pytest.raises(ToolchainLoadError) as excinfo:
        await registry.resolve("brainfuck")
    assert excinfo.value.language == "brainfuck"


@pytest.mark.asyncio
@pytest.mark.parametrize("language", ["../etc/passwd", ".hidden", ""])
async def test_path_like_identifiers_are_rejected(registry, language):
    with pytest.raises(ToolchainLoadError):
        await registry.resolve(language)


@pytest.mark.asyncio
async def test_invalid_definition(toolchain_dir, registry):
    (toolchain_dir / "bad.json").write_text('{"executionTimeout": -5}', encoding="utf-8")
    with pytest.raises(ToolchainLoadError):
        await registry.resolve("bad")


@pytest.mark.asyncio
async def test_definitions_are_cached(write_toolchain, registry):
    path = write_toolchain("py", runCommand="python3 {file}")
    first = await registry.resolve("py")
    path.unlink()
    assert await registry.resolve("py") is first


@pytest.mark.asyncio
async def test_allowed_languages_restrict_resolution(write_toolchain, toolchain_dir):
    write_toolchain("py", runCommand="python3 {file}")
    write_toolchain("c", runCommand="./a.out")
    registry = ToolchainRegistry(LocalToolchainStore(toolchain_dir), allowed_languages=["py"])

    assert await registry.languages() == ["py"]
    with pytest.raises(ToolchainLoadError):
        await registry.resolve("c")


@pytest.mark.asyncio
async def test_default_timeout_fills_gaps(write_toolchain, toolchain_dir):
    write_toolchain("py", runCommand="python3 {file}")
    write_toolchain("c", runCommand="./a.out", executionTimeout=100)
    registry = ToolchainRegistry(LocalToolchainStore(toolchain_dir), default_timeout_ms=7000)

    assert (await registry.resolve("py")).execution_timeout == 7000
    assert (await registry.resolve("c")).execution_timeout == 100


@pytest.mark.asyncio
async def test_builtin_toolchains_load():
    registry = ToolchainRegistry()
    languages = await registry.languages()
    assert {"python", "c", "cpp", "java", "javascript", "bash"} <= set(languages)
    for language in languages:
        toolchain = await registry.resolve(language)
        assert toolchain.run_command
        assert toolchain.execution_timeout and toolchain.execution_timeout > 0


def test_builtin_directory_is_packaged():
    assert (BUILTIN_TOOLCHAIN_DIR / "python.json").is_file()


@pytest.mark.asyncio
async def test_identifiers_are_case_insensitive(write_toolchain, toolchain_dir):
    write_toolchain("python", runCommand="python3 {file}")
    registry = ToolchainRegistry(LocalToolchainStore(toolchain_dir), allowed_languages=["Python"])

    toolchain = await registry.resolve(" Python ")

    assert toolchain.run_command == "python3 {file}"
    assert await registry.resolve("python") is toolchain
