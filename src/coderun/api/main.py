"""
FastAPI application for the compile-and-run service.

This module configures the FastAPI application, registers the routes for
listing toolchains and running programs, and enforces authentication via
an API key.  Submitted sources are written to a fresh temporary directory
per request; the directory and file are exposed to toolchain command
templates as ``{dir}``, ``{file}`` and ``{filename}``.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Dict

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from ..compiler import Compiler
from ..config import Config
from ..errors import (
    CompilationError,
    ConfigurationError,
    ExecutionTimeout,
    MissingCommand,
    ToolchainLoadError,
)
from ..executor import ProcessRunner
from ..models import CompilerOptions, RunRequest, RunResponse, ToolchainList
from ..storage import GCSToolchainStore, LocalToolchainStore, ToolchainStore
from ..toolchains import ToolchainRegistry


logger = logging.getLogger("coderun")

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[coderun] %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


config = Config.from_env()

logger.setLevel(config.log_level)

logger.info(
    "Loaded config: toolchain_backend=%s, toolchain_path=%s, allowed_langs=%s, default_timeout_ms=%s",
    config.toolchain_backend,
    config.toolchain_path,
    config.allowed_langs,
    config.default_timeout_ms,
)

WORK_DIR_BASE = Path(config.work_dir)
WORK_DIR_BASE.mkdir(parents=True, exist_ok=True)


def build_registry(cfg: Config) -> ToolchainRegistry:
    """Create the toolchain registry selected by ``cfg``."""
    if cfg.toolchain_backend == "gcs":
        if cfg.gcs_bucket is None:
            raise RuntimeError("CODERUN_GCS_BUCKET must be set when using the GCS toolchain backend")
        store: ToolchainStore = GCSToolchainStore(cfg.gcs_bucket, cfg.gcs_prefix)
    else:
        store = LocalToolchainStore(cfg.toolchain_path)
    return ToolchainRegistry(
        store,
        allowed_languages=cfg.allowed_langs or None,
        default_timeout_ms=cfg.default_timeout_ms,
    )


registry = build_registry(config)
runner = ProcessRunner()


def get_registry() -> ToolchainRegistry:
    return registry


def get_runner() -> ProcessRunner:
    return runner


app = FastAPI(title="Compile and Run Service", version="0.1.0")


@app.middleware("http")
async def authenticate(request, call_next):
    """Middleware to enforce API key authentication on all requests."""
    path = request.url.path
    method = request.method
    client = getattr(request.client, "host", "unknown")

    logger.info("Incoming request: %s %s from %s", method, path, client)

    if config.api_key:
        provided_key = request.headers.get("x-api-key")
        if provided_key != config.api_key:
            logger.warning("Invalid API key for %s %s from %s", method, path, client)
            return JSONResponse(status_code=401, content={"detail": "Invalid API key"})

    response = await call_next(request)
    logger.info("Response: %s %s -> %s", method, path, response.status_code)
    return response


@app.get("/health")
async def health() -> Dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}


@app.get("/v1/toolchains", response_model=ToolchainList)
async def list_toolchains(registry: ToolchainRegistry = Depends(get_registry)) -> ToolchainList:
    """List the language identifiers that can be executed."""
    return ToolchainList(languages=await registry.languages())


def _safe_filename(filename: str) -> str:
    if not filename or Path(filename).name != filename or filename.startswith("."):
        raise HTTPException(status_code=400, detail=f"Invalid filename: {filename!r}")
    return filename


@app.post("/v1/run", response_model=RunResponse)
async def run_program(
    req: RunRequest,
    registry: ToolchainRegistry = Depends(get_registry),
    runner: ProcessRunner = Depends(get_runner),
) -> RunResponse:
    """Compile (when the toolchain requires it) and run a program.

    A non-zero ``return_code`` with compiler output in ``data`` means the
    program did not compile; it is a successful response, not an error.
    """
    logger.info("[/v1/run] language=%s, inputs=%d", req.language, len(req.inputs))

    try:
        options = CompilerOptions(language=req.language, execution_timeout=req.execution_timeout)
        compiler = Compiler(options, registry=registry, runner=runner)

        with tempfile.TemporaryDirectory(dir=str(WORK_DIR_BASE)) as tmpdir:
            if req.source is not None:
                toolchain = await registry.resolve(compiler.language)
                filename = _safe_filename(req.filename or toolchain.source_file)
                source_path = Path(tmpdir) / filename
                source_path.write_text(req.source, encoding="utf-8")
                compiler.put_variable("dir", tmpdir)
                compiler.put_variable("file", str(source_path))
                compiler.put_variable("filename", filename)
            for name, value in req.variables.items():
                compiler.put_variable(name, value)
            compiler.set_inputs(*req.inputs)

            result = await compiler.execute()
    except HTTPException:
        raise
    except ToolchainLoadError as exc:
        logger.warning("[/v1/run] %s", exc)
        raise HTTPException(status_code=404, detail=str(exc))
    except (ConfigurationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ExecutionTimeout as exc:
        raise HTTPException(status_code=408, detail=str(exc))
    except (CompilationError, MissingCommand) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        logger.exception("[/v1/run] Unhandled error during execution: %s", exc)
        raise HTTPException(status_code=500, detail="Execution error")

    logger.info(
        "[/v1/run] Execution finished: return_code=%s, elapsed_ms=%s",
        result.return_code,
        result.elapsed_ms,
    )
    return RunResponse(return_code=result.return_code, data=result.data, elapsed_ms=result.elapsed_ms)
