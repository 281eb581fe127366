"""
Assistant error types.

All errors inherit from AssistantError so callers can catch them in one place.
Resolution failures are values (``None``) below the service layer; these
exceptions are what the service layer and the CLI see.
"""

from typing import Iterable

from note_assistant.core.domain.models import Failure, FailureKind


class AssistantError(Exception):
    """Base exception for all assistant failures."""

    pass


class ExecutableNotFoundError(AssistantError):
    """Raised when no candidate executable could be resolved."""

    def __init__(self, candidates: Iterable[str] = ()):
        self.candidates = list(candidates)
        message = "Assistant CLI not found"
        if self.candidates:
            message += f" (searched: {', '.join(self.candidates)})"
        super().__init__(
            message + ". Install it or set the executable path with "
            "'note-assistant config set PATH'."
        )


class AssistantRequestError(AssistantError):
    """Raised when the assistant process did not produce a successful result."""

    def __init__(self, failure: Failure):
        self.failure = failure
        super().__init__(f"Assistant CLI failed: {failure.describe()}")

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind

    @property
    def exit_code(self):
        return self.failure.exit_code


class SettingsError(AssistantError):
    """Raised when the settings file cannot be written."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot save settings to {path}: {reason}")
