import os
import shutil
from pathlib import Path
from typing import Optional

import logfire

from note_assistant.core.domain.models import (
    DEFAULT_COMMAND,
    ExecutableCandidate,
    ResolvedExecutable,
)

from .liveness import LivenessChecker


class PathResolver:
    """Handles discovery and validation of the assistant executable."""

    def __init__(self, liveness_checker: LivenessChecker = None, search_path: str = None):
        self.liveness_checker = liveness_checker or LivenessChecker()
        # None means the PATH of the current process
        self.search_path = search_path

    @staticmethod
    def is_override(value: Optional[str]) -> bool:
        return bool(value) and value != DEFAULT_COMMAND

    async def resolve(
        self, candidates: ExecutableCandidate, override: Optional[str] = None
    ) -> Optional[ResolvedExecutable]:
        """
        Return the first candidate that exists and passes the liveness check.
        An explicit override is trusted as-is. Returns None when nothing resolves.
        """
        if self.is_override(override):
            logfire.info("Using configured executable path: {path}", path=override)
            return ResolvedExecutable(path=override, source="override")

        logfire.debug("Searching {count} executable candidates", count=len(candidates))
        for entry in candidates:
            resolved = await self._try_candidate(entry)
            if resolved:
                logfire.info(
                    "Found assistant executable at {path}", path=resolved.path
                )
                return resolved

        logfire.warn("No valid assistant executable found")
        return None

    async def _try_candidate(self, entry: str) -> Optional[ResolvedExecutable]:
        logfire.debug("Checking candidate: {entry}", entry=entry)
        if ExecutableCandidate.is_bare_command(entry):
            found = shutil.which(entry, path=self.search_path)
            if not found:
                logfire.debug("{entry} not found on search path", entry=entry)
                return None
            path, source = str(Path(found).absolute()), "search-path"
        else:
            path = os.path.expanduser(entry)
            if not Path(path).exists():
                logfire.debug("{path} does not exist", path=path)
                return None
            source = "filesystem"

        if not await self.liveness_checker.check(path):
            return None
        return ResolvedExecutable(path=path, source=source)
