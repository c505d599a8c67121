"""Configuration loader.

The compile-and-run service reads its configuration from environment
variables so the same container image can run in multiple contexts
(docker‑compose, Cloud Run, etc.).  Reasonable defaults are provided so that
local development works out of the box.

Environment variables:

``CODERUN_API_KEY``
    The shared secret used to authenticate incoming requests.  Clients must
    include this value in the ``x‑api‑key`` header.  Empty disables the check.

``CODERUN_TOOLCHAIN_BACKEND``
    Where toolchain definitions are read from.  Supported values are
    ``local`` and ``gcs``.  Defaults to ``local``.

``CODERUN_TOOLCHAIN_PATH``
    Directory of ``<language>.json`` definitions for the ``local`` backend.
    Defaults to the definitions bundled with the package.

``CODERUN_GCS_BUCKET``
    Name of the Google Cloud Storage bucket holding definitions when
    ``CODERUN_TOOLCHAIN_BACKEND`` is ``gcs``.  Required for that backend.

``CODERUN_GCS_PREFIX``
    Object prefix of the definitions inside the bucket.  Defaults to
    ``toolchains/``.

``CODERUN_ALLOWED_LANGS``
    Comma‑separated list of language identifiers permitted for execution.
    Empty (the default) allows every defined toolchain.

``CODERUN_DEFAULT_TIMEOUT_MS``
    Timeout (in milliseconds) used for toolchains that do not declare one.
    Default is 10000.

``CODERUN_WORK_DIR``
    Base directory for the per-request temporary directories holding
    submitted sources.  Defaults to ``/tmp/coderun``.

``CODERUN_LOG_LEVEL``
    Level of the ``coderun`` logger.  Defaults to ``INFO``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from .storage import BUILTIN_TOOLCHAIN_DIR


@dataclass
class Config:
    """Centralised configuration object."""

    api_key: str
    toolchain_backend: str
    toolchain_path: str
    gcs_bucket: str | None
    gcs_prefix: str
    allowed_langs: List[str]
    default_timeout_ms: int
    work_dir: str
    log_level: str

    @classmethod
    def load(cls) -> "Config":
        # API key may be empty in local development but should be set in production.
        api_key = os.getenv("CODERUN_API_KEY", "")

        toolchain_backend = os.getenv("CODERUN_TOOLCHAIN_BACKEND", "local").lower()
        if toolchain_backend not in {"local", "gcs"}:
            raise ValueError(
                f"Invalid CODERUN_TOOLCHAIN_BACKEND: {toolchain_backend}. Use 'local' or 'gcs'."
            )
        toolchain_path = os.getenv("CODERUN_TOOLCHAIN_PATH", str(BUILTIN_TOOLCHAIN_DIR))
        gcs_bucket = os.getenv("CODERUN_GCS_BUCKET")
        if toolchain_backend == "gcs" and not gcs_bucket:
            raise RuntimeError(
                "CODERUN_GCS_BUCKET must be set when using the GCS toolchain backend"
            )
        gcs_prefix = os.getenv("CODERUN_GCS_PREFIX", "toolchains/")

        allowed_langs_env = os.getenv("CODERUN_ALLOWED_LANGS", "")
        allowed_langs = [lang.strip().lower() for lang in allowed_langs_env.split(",") if lang.strip()]

        def _int_var(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                raise ValueError(f"Invalid integer for {name}: {val}")

        default_timeout_ms = _int_var("CODERUN_DEFAULT_TIMEOUT_MS", 10000)
        if default_timeout_ms <= 0:
            raise ValueError(f"CODERUN_DEFAULT_TIMEOUT_MS must be positive, got {default_timeout_ms}")
        work_dir = os.getenv("CODERUN_WORK_DIR", "/tmp/coderun")
        log_level = os.getenv("CODERUN_LOG_LEVEL", "INFO").upper()

        return cls(
            api_key=api_key,
            toolchain_backend=toolchain_backend,
            toolchain_path=toolchain_path,
            gcs_bucket=gcs_bucket,
            gcs_prefix=gcs_prefix,
            allowed_langs=allowed_langs,
            default_timeout_ms=default_timeout_ms,
            work_dir=work_dir,
            log_level=log_level,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Alternate constructor used by the API to load configuration.

        This wrapper calls :meth:`load` to construct the configuration.
        It exists to provide a more intuitive name when consumed in
        application code.
        """
        return cls.load()
