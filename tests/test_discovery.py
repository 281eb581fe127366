from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from note_assistant.core.domain.models import (
    DEFAULT_COMMAND,
    ExecutableCandidate,
    ResolvedExecutable,
)
from note_assistant.process.discovery import PathResolver
from note_assistant.process.liveness import LivenessChecker

pytestmark = pytest.mark.skipif(os.name == "nt", reason="stub scripts need a shebang")

HEALTHY = """
import sys
sys.exit(0 if sys.argv[1:] == ["--version"] else 9)
"""
BROKEN = """
import sys
sys.exit(1)
"""
HANGS = """
import time
time.sleep(30)
"""


class RecordingChecker(LivenessChecker):
    def __init__(self):
        super().__init__(timeout=5)
        self.checked = []

    async def check(self, path, timeout=None):
        self.checked.append(path)
        return await super().check(path, timeout)


@pytest.mark.asyncio
async def test_liveness_passes_for_zero_exit(stub):
    assert await LivenessChecker().check(stub("ok", HEALTHY)) is True


@pytest.mark.asyncio
async def test_liveness_fails_for_non_zero_exit(stub):
    assert await LivenessChecker().check(stub("bad", BROKEN)) is False


@pytest.mark.asyncio
async def test_liveness_fails_for_missing_or_non_executable(stub, tmp_path):
    assert await LivenessChecker().check(str(tmp_path / "nope")) is False
    assert await LivenessChecker().check(stub("plain", HEALTHY, executable=False)) is False


@pytest.mark.asyncio
async def test_liveness_times_out(stub):
    started = time.monotonic()
    result = await LivenessChecker(timeout=0.2).check(stub("slow", HANGS))

    assert result is False
    assert time.monotonic() - started < 5


@pytest.mark.asyncio
async def test_first_valid_candidate_wins(stub, tmp_path):
    first = stub("first", HEALTHY)
    second = stub("second", HEALTHY)
    candidates = ExecutableCandidate((str(tmp_path / "missing"), first, second))

    resolved = await PathResolver().resolve(candidates)

    assert resolved == ResolvedExecutable(path=first, source="filesystem")


@pytest.mark.asyncio
async def test_dead_candidates_are_skipped(stub):
    broken = stub("broken", BROKEN)
    plain = stub("plain", HEALTHY, executable=False)
    good = stub("good", HEALTHY)
    checker = RecordingChecker()

    resolved = await PathResolver(checker).resolve(ExecutableCandidate((broken, plain, good)))

    assert resolved.path == good
    assert checker.checked == [broken, plain, good]


@pytest.mark.asyncio
async def test_no_valid_candidate_returns_none(stub, tmp_path):
    candidates = ExecutableCandidate(
        (DEFAULT_COMMAND + "-surely-not-installed", str(tmp_path / "x"), stub("b", BROKEN))
    )

    assert await PathResolver().resolve(candidates) is None


@pytest.mark.asyncio
async def test_bare_command_is_resolved_on_search_path(stub, tmp_path):
    stub("fake-assistant", HEALTHY)
    resolver = PathResolver(search_path=str(tmp_path))

    resolved = await resolver.resolve(ExecutableCandidate(("fake-assistant",)))

    assert resolved.source == "search-path"
    assert Path(resolved.path).is_absolute()
    assert Path(resolved.path).name == "fake-assistant"


@pytest.mark.asyncio
async def test_bare_command_must_also_pass_liveness(stub, tmp_path):
    stub("fake-assistant", BROKEN)
    resolver = PathResolver(search_path=str(tmp_path))

    assert await resolver.resolve(ExecutableCandidate(("fake-assistant",))) is None


@pytest.mark.asyncio
async def test_override_bypasses_search_and_validation(tmp_path):
    checker = RecordingChecker()
    override = str(tmp_path / "not-even-there")

    resolved = await PathResolver(checker).resolve(ExecutableCandidate(()), override=override)

    assert resolved == ResolvedExecutable(path=override, source="override")
    assert checker.checked == []


@pytest.mark.asyncio
async def test_sentinel_override_means_auto_discover(stub):
    good = stub("good", HEALTHY)

    resolved = await PathResolver().resolve(ExecutableCandidate((good,)), override=DEFAULT_COMMAND)

    assert resolved.path == good
    assert resolved.source == "filesystem"


def test_default_candidates_start_with_bare_command(tmp_path):
    candidates = ExecutableCandidate.default(home=tmp_path)

    assert candidates.entries[0] == DEFAULT_COMMAND
    assert ExecutableCandidate.is_bare_command(candidates.entries[0])
    assert str(tmp_path / ".local" / "bin" / DEFAULT_COMMAND) in candidates.entries
    assert not any(ExecutableCandidate.is_bare_command(e) for e in candidates.entries[1:])


def test_candidates_are_immutable_and_extendable():
    candidates = ExecutableCandidate(["a", "/b"])

    extended = candidates.extended(["/c", ""])

    assert candidates.entries == ("a", "/b")
    assert extended.entries == ("a", "/b", "/c")
    with pytest.raises(AttributeError):
        candidates.entries = ()
