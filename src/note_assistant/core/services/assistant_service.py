from pathlib import Path
from typing import Optional, Sequence

import logfire

from note_assistant.core.domain.models import (
    AssistantSettings,
    Failure,
    InvocationSpec,
)
from note_assistant.core.errors import AssistantRequestError, ExecutableNotFoundError
from note_assistant.core.services.settings_service import SettingsService
from note_assistant.process.cache import ExecutableCache
from note_assistant.process.environment import build_child_env
from note_assistant.process.runner import ProcessRunner

PROMPT_SEPARATOR = "\n\n---------\n\n"
ASSISTANT_ARGS = ("--verbose", "--print")
PREVIEW_LENGTH = 200


def build_prompt(document_body: str, question: str) -> str:
    return f"{document_body}{PROMPT_SEPARATOR}{question}"


def format_insertion(response: str) -> str:
    """Block inserted at the editor cursor."""
    return f"\n\n{response}\n\n"


class AssistantService:
    def __init__(
        self,
        runner: ProcessRunner,
        executable_cache: ExecutableCache,
        settings_service: SettingsService,
        extra_path_dirs: Sequence[str] = (),
        working_dir: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.executable_cache = executable_cache
        self.settings_service = settings_service
        self.extra_path_dirs = list(extra_path_dirs)
        self.working_dir = working_dir or str(Path.home())
        self.timeout = timeout

    @logfire.instrument("Ask assistant")
    async def ask(self, document_body: str, question: str) -> str:
        """
        Send the document and question to the assistant CLI and return its answer.

        Raises ExecutableNotFoundError when no executable is available and
        AssistantRequestError when the process fails, times out or cannot start.
        """
        executable = await self.executable_cache.get()
        if executable is None:
            raise ExecutableNotFoundError(self.executable_cache.searched)

        prompt = build_prompt(document_body, question)
        logfire.info(
            "Prompt built: {length} chars, question: {question_preview}",
            length=len(prompt),
            question_preview=question[:100],
        )
        logfire.debug("Prompt preview: {preview}", preview=prompt[:PREVIEW_LENGTH])

        spec = InvocationSpec(
            command=executable.path,
            args=ASSISTANT_ARGS,
            env=build_child_env(self.extra_path_dirs),
            cwd=self.working_dir,
            payload=prompt,
        )
        outcome = await self.runner.run(spec, timeout=self.timeout)

        if isinstance(outcome, Failure):
            logfire.error("Assistant request failed: {detail}", detail=outcome.describe())
            raise AssistantRequestError(outcome)

        logfire.info("Assistant responded with {length} chars", length=len(outcome.stdout))
        return outcome.stdout

    def update_executable_path(self, path: str) -> AssistantSettings:
        """Persist a new executable path and force re-resolution on next use."""
        settings = self.settings_service.load()
        settings.executable_path = path
        self.settings_service.save(settings)
        self.executable_cache.invalidate()
        return settings
