import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

DEFAULT_COMMAND = "claude"


@dataclass(frozen=True)
class ExecutableCandidate:
    """Ordered executable locations. The first entry that resolves wins."""

    entries: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    @staticmethod
    def is_bare_command(entry: str) -> bool:
        """A bare command has no directory part and is looked up on PATH."""
        return os.sep not in entry and "/" not in entry and not entry.startswith("~")

    def extended(self, extra: List[str]) -> "ExecutableCandidate":
        return ExecutableCandidate(self.entries + tuple(e for e in extra if e))

    @classmethod
    def default(
        cls, command: str = DEFAULT_COMMAND, home: Optional[Path] = None
    ) -> "ExecutableCandidate":
        home = home or Path.home()
        if os.name == "nt":
            command = f"{command}.cmd"
            return cls(
                (
                    command,
                    str(home / ".claude" / "local" / command),
                    str(home / ".claude" / "local" / "node_modules" / ".bin" / command),
                )
            )

        return cls(
            (
                command,
                f"/usr/local/bin/{command}",
                f"/opt/homebrew/bin/{command}",
                str(home / ".claude" / "local" / command),
                str(home / ".claude" / "local" / "node_modules" / ".bin" / command),
                str(home / ".config" / "claude" / command),
                str(home / ".local" / "bin" / command),
            )
        )


@dataclass(frozen=True)
class ResolvedExecutable:
    path: str
    source: str  # override, search-path, filesystem

    def __str__(self):
        return self.path


@dataclass(frozen=True)
class InvocationSpec:
    command: str
    args: Tuple[str, ...] = ()
    env: Optional[Mapping[str, str]] = None
    cwd: Optional[str] = None
    payload: str = ""

    @property
    def argv(self) -> List[str]:
        return [self.command, *self.args]


class FailureKind(str, Enum):
    SPAWN_ERROR = "SpawnError"
    PROCESS_EXITED_NON_ZERO = "ProcessExitedNonZero"
    TIMEOUT = "Timeout"
    STREAM_UNAVAILABLE = "StreamUnavailable"


@dataclass(frozen=True)
class Success:
    stdout: str
    pid: Optional[int] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    partial_stdout: str = ""
    partial_stderr: str = ""
    exit_code: Optional[int] = None
    pid: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False

    def describe(self) -> str:
        detail = self.message.strip() or "(no error output)"
        if self.exit_code is not None:
            return f"{self.kind.value} (exit code {self.exit_code}): {detail}"
        return f"{self.kind.value}: {detail}"


InvocationOutcome = Union[Success, Failure]


@dataclass
class AssistantSettings:
    """Persisted user configuration."""

    executable_path: str = DEFAULT_COMMAND
    extra_candidates: List[str] = field(default_factory=list)

    @property
    def uses_auto_discovery(self) -> bool:
        return not self.executable_path or self.executable_path == DEFAULT_COMMAND
