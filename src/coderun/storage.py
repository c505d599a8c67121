"""Storage backends for toolchain definitions.

A toolchain definition is a small JSON document named after its language
identifier (``python.json``, ``c.json`` ...).  To decouple the registry from
where those documents live, an abstract backend is defined with a common
interface.  Two concrete backends are provided:

* ``LocalToolchainStore`` – reads definitions from a directory on the local
  filesystem.  The package ships a default set under
  ``coderun/builtin_toolchains``.

* ``GCSToolchainStore`` – reads definitions from a Google Cloud Storage
  bucket.  Suitable for Cloud Run deployments where toolchains are managed
  centrally.

Backends are blocking; the registry calls them from a worker thread.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

try:
    from google.cloud import storage  # type: ignore
except ImportError:
    storage = None  # type: ignore

BUILTIN_TOOLCHAIN_DIR = Path(__file__).parent / "builtin_toolchains"

DEFINITION_SUFFIX = ".json"


class ToolchainStore:
    """Protocol for toolchain definition backends."""

    def read(self, language: str) -> bytes:
        """Return the raw definition for ``language``.

        Raises ``FileNotFoundError`` when no definition exists.
        """
        raise NotImplementedError

    def list(self) -> List[str]:
        """Return the language identifiers with a definition."""
        raise NotImplementedError


def _check_language(language: str) -> None:
    if not language or "/" in language or "\\" in language or language.startswith("."):
        raise FileNotFoundError(f"Invalid toolchain identifier: {language!r}")


class LocalToolchainStore(ToolchainStore):
    """Read toolchain definitions from a local directory."""

    def __init__(self, base_dir: Union[str, Path] = BUILTIN_TOOLCHAIN_DIR) -> None:
        self.base_dir = Path(base_dir)

    def read(self, language: str) -> bytes:
        _check_language(language)
        return (self.base_dir / f"{language}{DEFINITION_SUFFIX}").read_bytes()

    def list(self) -> List[str]:
        if not self.base_dir.exists():
            return []
        return sorted(p.stem for p in self.base_dir.glob(f"*{DEFINITION_SUFFIX}") if p.is_file())


class GCSToolchainStore(ToolchainStore):
    """Read toolchain definitions from Google Cloud Storage.

    Definitions are stored as ``<prefix><language>.json``.  This backend
    requires ``google-cloud-storage`` to be installed and appropriate service
    credentials to be available (Cloud Run automatically provides credentials
    via its service account).
    """

    def __init__(self, bucket_name: str, prefix: str = "toolchains/") -> None:
        if storage is None:
            raise RuntimeError(
                "google-cloud-storage is not installed; cannot use GCSToolchainStore"
            )
        client = storage.Client()
        self.bucket = client.bucket(bucket_name)
        self.prefix = prefix

    def read(self, language: str) -> bytes:
        _check_language(language)
        blob = self.bucket.blob(f"{self.prefix}{language}{DEFINITION_SUFFIX}")
        if not blob.exists():
            raise FileNotFoundError(f"gs://{self.bucket.name}/{blob.name}")
        return blob.download_as_bytes()

    def list(self) -> List[str]:
        names = []
        for blob in self.bucket.list_blobs(prefix=self.prefix):
            name = blob.name[len(self.prefix):]
            if name.endswith(DEFINITION_SUFFIX) and "/" not in name:
                names.append(name[: -len(DEFINITION_SUFFIX)])
        return sorted(names)
