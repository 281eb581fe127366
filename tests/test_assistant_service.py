from __future__ import annotations

import os

import pytest

from note_assistant.core.domain.models import (
    AssistantSettings,
    ExecutableCandidate,
    FailureKind,
)
from note_assistant.core.errors import AssistantRequestError, ExecutableNotFoundError
from note_assistant.core.services.assistant_service import (
    AssistantService,
    build_prompt,
    format_insertion,
)
from note_assistant.core.services.settings_service import SettingsService
from note_assistant.process.cache import ExecutableCache
from note_assistant.process.discovery import PathResolver
from note_assistant.process.runner import ProcessRunner

pytestmark = pytest.mark.skipif(os.name == "nt", reason="stub scripts need a shebang")

SUMMARY = """
import sys
sys.stdin.read()
print("Summary: ok")
"""
BYTE_LENGTH = """
import sys
print(len(sys.stdin.buffer.read()))
"""
ECHO = """
import sys
sys.stdout.buffer.write(sys.stdin.buffer.read())
"""
ARGS = """
import sys
print(" ".join(sys.argv[1:]))
"""
SEARCH_PATH = """
import os
print(os.environ["PATH"])
"""
FAILS = """
import sys
sys.stdin.read()
sys.stderr.write("quota exceeded")
sys.exit(2)
"""


def make_service(settings_path, executable=None, **kwargs):
    settings_service = SettingsService(settings_path)
    if executable:
        settings_service.save(AssistantSettings(executable_path=executable))
    cache = ExecutableCache(
        PathResolver(search_path=""), settings_service.load, candidates=ExecutableCandidate(())
    )
    return AssistantService(
        runner=ProcessRunner(default_timeout=20),
        executable_cache=cache,
        settings_service=settings_service,
        **kwargs,
    )


def test_prompt_joins_body_separator_and_question():
    assert build_prompt("# Note", "Why?") == "# Note\n\n---------\n\nWhy?"
    assert build_prompt("", "") == "\n\n---------\n\n"


def test_insertion_block_is_padded():
    assert format_insertion("answer") == "\n\nanswer\n\n"


@pytest.mark.asyncio
async def test_ask_returns_stub_output(stub, settings_path):
    service = make_service(settings_path, stub("assistant", SUMMARY))

    result = await service.ask("# My Note\nSome text.", "Summarize this")

    assert result == "Summary: ok"


@pytest.mark.asyncio
async def test_payload_reaches_child_byte_for_byte(stub, settings_path):
    service = make_service(settings_path, stub("assistant", BYTE_LENGTH))

    result = await service.ask("", "hi")

    assert result == str(len(build_prompt("", "hi").encode("utf-8")))


@pytest.mark.asyncio
async def test_non_ascii_document_is_preserved(stub, settings_path):
    service = make_service(settings_path, stub("assistant", ECHO))
    body = "# 議事録\n\n- café ☕\n"

    result = await service.ask(body, "要約して")

    assert result == build_prompt(body, "要約して").strip()


@pytest.mark.asyncio
async def test_repeated_asks_are_identical(stub, settings_path):
    service = make_service(settings_path, stub("assistant", ECHO))

    first = await service.ask("body", "question")
    second = await service.ask("body", "question")

    assert first == second == build_prompt("body", "question")


@pytest.mark.asyncio
async def test_fixed_arguments_request_print_mode(stub, settings_path):
    service = make_service(settings_path, stub("assistant", ARGS))

    assert await service.ask("doc", "q") == "--verbose --print"


@pytest.mark.asyncio
async def test_child_search_path_is_augmented(stub, settings_path, tmp_path):
    service = make_service(
        settings_path,
        stub("assistant", SEARCH_PATH),
        extra_path_dirs=["/opt/first", "/opt/second"],
        working_dir=str(tmp_path),
    )

    path = await service.ask("doc", "q")

    assert path.startswith(os.pathsep.join(["/opt/first", "/opt/second"]))
    assert path.endswith(os.environ.get("PATH", ""))


@pytest.mark.asyncio
async def test_failure_is_raised_with_detail(stub, settings_path):
    service = make_service(settings_path, stub("assistant", FAILS))

    with pytest.raises(AssistantRequestError) as excinfo:
        await service.ask("doc", "q")

    assert excinfo.value.kind is FailureKind.PROCESS_EXITED_NON_ZERO
    assert excinfo.value.exit_code == 2
    assert excinfo.value.failure.message == "quota exceeded"
    assert "quota exceeded" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unstartable_override_is_a_spawn_error(settings_path, tmp_path):
    service = make_service(settings_path, str(tmp_path / "gone"))

    with pytest.raises(AssistantRequestError) as excinfo:
        await service.ask("doc", "q")

    assert excinfo.value.kind is FailureKind.SPAWN_ERROR


@pytest.mark.asyncio
async def test_missing_executable_raises_not_found(settings_path):
    service = make_service(settings_path)

    with pytest.raises(ExecutableNotFoundError):
        await service.ask("doc", "q")


@pytest.mark.asyncio
async def test_timeout_is_surfaced(stub, settings_path):
    hang = stub("assistant", "import time\ntime.sleep(30)\n")
    service = make_service(settings_path, hang, timeout=0.2)

    with pytest.raises(AssistantRequestError) as excinfo:
        await service.ask("doc", "q")

    assert excinfo.value.kind is FailureKind.TIMEOUT


@pytest.mark.asyncio
async def test_updating_path_persists_and_reresolves(stub, settings_path):
    service = make_service(settings_path, stub("old", ARGS))
    await service.ask("doc", "q")

    new = stub("new", SUMMARY)
    service.update_executable_path(new)

    assert SettingsService(settings_path).load().executable_path == new
    assert await service.ask("doc", "q") == "Summary: ok"
