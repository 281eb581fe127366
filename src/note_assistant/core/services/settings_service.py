import json
import os
from pathlib import Path
from typing import Optional

import logfire

from note_assistant.core.domain.models import DEFAULT_COMMAND, AssistantSettings
from note_assistant.core.errors import SettingsError

CONFIG_ENV_VAR = "NOTE_ASSISTANT_CONFIG"
SETTINGS_FILENAME = "settings.json"


def default_settings_path() -> Path:
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    if os.name == "nt" and os.getenv("APPDATA"):
        return Path(os.environ["APPDATA"]) / "note-assistant" / SETTINGS_FILENAME
    return Path.home() / ".config" / "note-assistant" / SETTINGS_FILENAME


class SettingsService:
    """Loads and persists the ``{"executablePath": ...}`` settings record."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_settings_path()

    def load(self) -> AssistantSettings:
        if not self.path.exists():
            return AssistantSettings()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logfire.warn("Failed to load settings from {path}: {error}", path=str(self.path), error=str(e))
            return AssistantSettings()

        if not isinstance(data, dict):
            logfire.warn("Ignoring malformed settings in {path}", path=str(self.path))
            return AssistantSettings()

        extra = data.get("extraCandidates", [])
        if not isinstance(extra, list):
            logfire.warn(
                "Ignoring extraCandidates in {path}: expected a list", path=str(self.path)
            )
            extra = []

        return AssistantSettings(
            executable_path=str(data.get("executablePath") or DEFAULT_COMMAND),
            extra_candidates=[str(c) for c in extra if c],
        )

    def save(self, settings: AssistantSettings):
        record = {"executablePath": settings.executable_path}
        if settings.extra_candidates:
            record["extraCandidates"] = settings.extra_candidates
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
        except OSError as e:
            raise SettingsError(self.path, str(e)) from e
        logfire.info("Settings saved to {path}", path=str(self.path))
