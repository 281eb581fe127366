import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence


def default_path_dirs(home: Optional[Path] = None) -> List[str]:
    """Well-known install locations the child may need for its own runtime."""
    if os.name == "nt":
        return []
    home = home or Path.home()
    return [
        "/opt/homebrew/bin",
        "/usr/local/bin",
        str(home / ".local" / "bin"),
        str(home / ".claude" / "local"),
    ]


def build_child_env(
    extra_dirs: Sequence[str] = (), base: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """Copy the environment and prepend ``extra_dirs`` to PATH without dropping it."""
    env = dict(os.environ if base is None else base)
    parts = [d for d in extra_dirs if d]
    if env.get("PATH"):
        parts.append(env["PATH"])
    env["PATH"] = os.pathsep.join(parts)
    return env
