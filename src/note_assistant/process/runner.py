import asyncio
import codecs
import time
from dataclasses import dataclass, field
from typing import List, Optional

import logfire

from note_assistant.core.domain.events import (
    EventEmitter,
    ProcessFinishedEvent,
    ProcessSpawnedEvent,
    ProcessStatusEvent,
    StreamChunkEvent,
)
from note_assistant.core.domain.models import (
    Failure,
    FailureKind,
    InvocationOutcome,
    InvocationSpec,
    Success,
)

DEFAULT_TIMEOUT = 300.0
DEFAULT_KILL_GRACE = 1.0
READ_CHUNK_SIZE = 64 * 1024


@dataclass
class StreamAccumulator:
    """Collects decoded text from one child stream in arrival order."""

    name: str
    parts: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> str:
        text = self._decoder.decode(chunk)
        if text:
            self.parts.append(text)
        return text

    def close(self):
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self.parts.append(tail)

    @property
    def text(self) -> str:
        return "".join(self.parts)


class ProcessRunner:
    """
    Runs one child process per call: feeds the payload to stdin, collects
    stdout/stderr concurrently, and classifies the result into a single outcome.
    """

    def __init__(
        self,
        default_timeout: float = DEFAULT_TIMEOUT,
        kill_grace: float = DEFAULT_KILL_GRACE,
        status_interval: Optional[float] = None,
        event_emitter: Optional[EventEmitter] = None,
    ):
        self.default_timeout = default_timeout
        self.kill_grace = kill_grace
        self.status_interval = status_interval
        self.event_emitter = event_emitter

    async def run(
        self, spec: InvocationSpec, timeout: Optional[float] = None
    ) -> InvocationOutcome:
        if timeout is None:
            timeout = self.default_timeout

        with logfire.span(
            "Running {command}",
            command=spec.command,
            args=list(spec.args),
            cwd=spec.cwd,
            payload_length=len(spec.payload),
            timeout=timeout,
        ):
            # Lone surrogates have no UTF-8 form and become "?"
            data = spec.payload.encode("utf-8", errors="replace")
            try:
                proc = await asyncio.create_subprocess_exec(
                    *spec.argv,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=dict(spec.env) if spec.env is not None else None,
                    cwd=spec.cwd,
                )
            except (OSError, ValueError) as e:
                logfire.error("Failed to start {command}: {error}", command=spec.command, error=str(e))
                return self._finish(Failure(FailureKind.SPAWN_ERROR, str(e)))

            logfire.debug("Spawned {command} with pid {pid}", command=spec.command, pid=proc.pid)
            self._emit(ProcessSpawnedEvent, pid=proc.pid, command=spec.command)

            if proc.stdin is None or proc.stdout is None or proc.stderr is None:
                await self._terminate(proc)
                return self._finish(
                    Failure(
                        FailureKind.STREAM_UNAVAILABLE,
                        "Child process streams are not available",
                        pid=proc.pid,
                    )
                )

            return self._finish(await self._supervise(proc, data, timeout))

    async def _supervise(self, proc, data: bytes, timeout: float) -> InvocationOutcome:
        stdout = StreamAccumulator("stdout")
        stderr = StreamAccumulator("stderr")

        io_tasks = [
            asyncio.ensure_future(self._write_payload(proc, data)),
            asyncio.ensure_future(self._pump(proc.pid, proc.stdout, stdout)),
            asyncio.ensure_future(self._pump(proc.pid, proc.stderr, stderr)),
        ]
        exit_task = asyncio.ensure_future(proc.wait())
        side_tasks = []
        if self.status_interval:
            side_tasks.append(asyncio.ensure_future(self._poll_status(proc)))

        try:
            _, pending = await asyncio.wait(io_tasks + [exit_task], timeout=timeout)
            if pending:
                logfire.warn(
                    "Process {pid} exceeded timeout of {timeout}s, terminating",
                    pid=proc.pid,
                    timeout=timeout,
                )
                await self._terminate(proc)
                # Let the readers collect whatever is left in the pipes
                await asyncio.wait(io_tasks, timeout=self.kill_grace)
                return Failure(
                    FailureKind.TIMEOUT,
                    f"Process did not finish within {timeout}s",
                    partial_stdout=stdout.text,
                    partial_stderr=stderr.text,
                    pid=proc.pid,
                )
        finally:
            tasks = io_tasks + [exit_task] + side_tasks
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        code = proc.returncode
        logfire.debug(
            "Process {pid} exited with code {code} (stdout={out_len}, stderr={err_len})",
            pid=proc.pid,
            code=code,
            out_len=len(stdout.text),
            err_len=len(stderr.text),
        )
        if code == 0:
            return Success(stdout=stdout.text.strip(), pid=proc.pid)
        return Failure(
            FailureKind.PROCESS_EXITED_NON_ZERO,
            stderr.text,
            partial_stdout=stdout.text,
            partial_stderr=stderr.text,
            exit_code=code,
            pid=proc.pid,
        )

    async def _write_payload(self, proc, data: bytes):
        stdin = proc.stdin
        try:
            if data:
                stdin.write(data)
                await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            # The child stopped reading; its exit status decides the outcome
            logfire.debug("stdin of {pid} closed early: {error}", pid=proc.pid, error=str(e))
        except asyncio.CancelledError:
            stdin.transport.abort()
            raise
        finally:
            stdin.close()

    async def _pump(self, pid: int, stream: asyncio.StreamReader, acc: StreamAccumulator):
        try:
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                acc.feed(chunk)
                self._emit(StreamChunkEvent, pid=pid, stream=acc.name, size=len(chunk))
        finally:
            acc.close()

    async def _poll_status(self, proc):
        started = time.monotonic()
        while True:
            await asyncio.sleep(self.status_interval)
            elapsed = time.monotonic() - started
            logfire.debug(
                "Status check: pid {pid} still running after {elapsed}s",
                pid=proc.pid,
                elapsed=round(elapsed, 1),
            )
            self._emit(ProcessStatusEvent, pid=proc.pid, elapsed=elapsed)

    async def _terminate(self, proc):
        """SIGTERM, then SIGKILL after the grace period; always reaps."""
        if proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            pass
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.kill_grace)
            return
        except asyncio.TimeoutError:
            logfire.warn("Process {pid} ignored SIGTERM, killing", pid=proc.pid)

        try:
            proc.kill()
        except ProcessLookupError:
            pass
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.kill_grace)
        except asyncio.TimeoutError:
            logfire.error("Process {pid} could not be reaped after SIGKILL", pid=proc.pid)

    def _finish(self, outcome: InvocationOutcome) -> InvocationOutcome:
        if isinstance(outcome, Failure):
            self._emit(
                ProcessFinishedEvent,
                pid=outcome.pid,
                outcome=outcome.kind.value,
                exit_code=outcome.exit_code,
            )
        else:
            self._emit(ProcessFinishedEvent, pid=outcome.pid, outcome="Success", exit_code=0)
        return outcome

    def _emit(self, event_cls, **fields):
        if self.event_emitter:
            self.event_emitter.emit(
                event_cls(type=event_cls.__name__, timestamp=time.time(), **fields)
            )
