"""Toolchain registry.

Maps a language identifier to a :class:`~coderun.models.Toolchain`.  The
definitions come from a :class:`~coderun.storage.ToolchainStore`; reads are
blocking so they run in a worker thread, and parsed definitions are cached
for the lifetime of the registry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from .errors import ToolchainLoadError
from .models import Toolchain
from .storage import LocalToolchainStore, ToolchainStore

logger = logging.getLogger("coderun.toolchains")


class ToolchainRegistry:
    """Resolve toolchains by language identifier.

    Parameters
    ----------
    store: ToolchainStore, optional
        Where definitions are read from.  Defaults to the bundled
        definitions.
    allowed_languages: iterable of str, optional
        When given, only these identifiers can be resolved.
    default_timeout_ms: float, optional
        Timeout filled into definitions that do not declare one.
    """

    def __init__(
        self,
        store: Optional[ToolchainStore] = None,
        allowed_languages: Optional[Iterable[str]] = None,
        default_timeout_ms: Optional[float] = None,
    ) -> None:
        self.store = store or LocalToolchainStore()
        self.allowed_languages = (
            {lang.strip().lower() for lang in allowed_languages if lang.strip()}
            if allowed_languages
            else None
        )
        self.default_timeout_ms = default_timeout_ms
        self._cache: Dict[str, Toolchain] = {}

    def _is_allowed(self, language: str) -> bool:
        return self.allowed_languages is None or language.lower() in self.allowed_languages

    async def resolve(self, language: str) -> Toolchain:
        # Identifiers are case-insensitive; definitions are stored lowercase.
        language = language.strip().lower()
        if not self._is_allowed(language):
            raise ToolchainLoadError(language, "language not allowed")
        cached = self._cache.get(language)
        if cached is not None:
            return cached

        try:
            raw = await asyncio.to_thread(self.store.read, language)
        except FileNotFoundError:
            raise ToolchainLoadError(language, "unknown language") from None
        except OSError as exc:
            raise ToolchainLoadError(language, str(exc)) from exc

        try:
            toolchain = Toolchain.model_validate_json(raw)
        except ValidationError as exc:
            raise ToolchainLoadError(language, f"invalid definition: {exc}") from exc

        if toolchain.execution_timeout is None and self.default_timeout_ms is not None:
            toolchain = toolchain.model_copy(update={"execution_timeout": self.default_timeout_ms})

        logger.debug("Loaded toolchain %s: %s", language, toolchain.model_dump())
        self._cache[language] = toolchain
        return toolchain

    async def languages(self) -> List[str]:
        names = await asyncio.to_thread(self.store.list)
        return [name for name in names if self._is_allowed(name)]
