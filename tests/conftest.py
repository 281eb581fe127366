"""Shared pytest fixtures."""

from __future__ import annotations

import stat
import sys
import textwrap
from pathlib import Path

import logfire
import pytest

logfire.configure(send_to_logfire=False, console=False)


def write_stub(directory: Path, name: str, body: str, executable: bool = True) -> Path:
    """Write a Python script that runs directly as a command."""
    path = directory / name
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body), encoding="utf-8")
    mode = path.stat().st_mode
    if executable:
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    else:
        path.chmod(mode & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    return path


@pytest.fixture
def stub(tmp_path):
    def factory(name: str, body: str, executable: bool = True) -> str:
        return str(write_stub(tmp_path, name, body, executable=executable))

    return factory


@pytest.fixture
def settings_path(tmp_path) -> Path:
    return tmp_path / "config" / "settings.json"
