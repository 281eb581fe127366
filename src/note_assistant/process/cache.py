import asyncio
from typing import Callable, Optional

import logfire

from note_assistant.core.domain.models import (
    AssistantSettings,
    ExecutableCandidate,
    ResolvedExecutable,
)

from .discovery import PathResolver


class ExecutableCache:
    """
    Holds the resolved executable for the lifetime of the process.
    Call ``invalidate()`` when the configured path changes; the next ``get()``
    resolves again.
    """

    def __init__(
        self,
        resolver: PathResolver,
        settings_loader: Callable[[], AssistantSettings],
        candidates: Optional[ExecutableCandidate] = None,
    ):
        self.resolver = resolver
        self.settings_loader = settings_loader
        self.candidates = (
            candidates if candidates is not None else ExecutableCandidate.default()
        )
        self._resolved: Optional[ResolvedExecutable] = None
        self._resolved_once = False
        self._lock = asyncio.Lock()

    @property
    def searched(self) -> ExecutableCandidate:
        settings = self.settings_loader()
        return self.candidates.extended(settings.extra_candidates)

    async def get(self) -> Optional[ResolvedExecutable]:
        if self._resolved_once:
            return self._resolved
        async with self._lock:
            if not self._resolved_once:
                await self._resolve()
        return self._resolved

    async def refresh(self) -> Optional[ResolvedExecutable]:
        async with self._lock:
            await self._resolve()
        return self._resolved

    def invalidate(self):
        logfire.debug("Executable cache invalidated")
        self._resolved = None
        self._resolved_once = False

    async def _resolve(self):
        settings = self.settings_loader()
        override = None if settings.uses_auto_discovery else settings.executable_path
        self._resolved = await self.resolver.resolve(self.searched, override=override)
        self._resolved_once = True
