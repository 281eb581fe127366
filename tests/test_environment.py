from __future__ import annotations

import os

from note_assistant.process.environment import build_child_env, default_path_dirs


def test_extra_dirs_are_prepended_to_existing_path():
    env = build_child_env(["/opt/one", "/opt/two"], base={"PATH": "/usr/bin", "HOME": "/h"})

    assert env["PATH"] == os.pathsep.join(["/opt/one", "/opt/two", "/usr/bin"])
    assert env["HOME"] == "/h"


def test_missing_path_is_not_invented():
    env = build_child_env(["/opt/one", ""], base={})

    assert env["PATH"] == "/opt/one"


def test_process_environment_is_not_mutated():
    before = os.environ.get("PATH")

    env = build_child_env(["/somewhere/else"])

    assert os.environ.get("PATH") == before
    assert env["PATH"].endswith(before or "")
    assert env["PATH"].startswith("/somewhere/else")


def test_default_dirs_follow_home(tmp_path):
    dirs = default_path_dirs(home=tmp_path)

    if os.name == "nt":
        assert dirs == []
    else:
        assert str(tmp_path / ".local" / "bin") in dirs
        assert "/usr/local/bin" in dirs
