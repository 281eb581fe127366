import asyncio
import json
import sys
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Callable, List, Optional, Set, TextIO


@dataclass
class ProcessEvent:
    """Base class for all child-process events."""

    type: str
    timestamp: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))


@dataclass
class ProcessSpawnedEvent(ProcessEvent):
    pid: int
    command: str


@dataclass
class StreamChunkEvent(ProcessEvent):
    pid: int
    stream: str  # stdout, stderr
    size: int


@dataclass
class ProcessStatusEvent(ProcessEvent):
    pid: int
    elapsed: float


@dataclass
class ProcessFinishedEvent(ProcessEvent):
    pid: Optional[int]
    outcome: str  # Success or a FailureKind value
    exit_code: Optional[int] = None


class EventTransport(ABC):
    """Abstract base class for event transports."""

    @abstractmethod
    async def emit(self, event: Any):
        pass


class JSONLinesTransport(EventTransport):
    """Transport that writes events as JSON Lines (stderr by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    async def emit(self, event: Any):
        if hasattr(event, "to_json"):
            line = event.to_json()
        else:
            line = json.dumps(event)
        print(line, file=self.stream or sys.stderr, flush=True)


class CallbackTransport(EventTransport):
    """Transport that proxies events to a callback function."""

    def __init__(self, callback: Callable):
        self.callback = callback

    async def emit(self, event: Any):
        if asyncio.iscoroutinefunction(self.callback):
            await self.callback(event)
        else:
            self.callback(event)


class EventEmitter:
    """Fans events out to the registered transports without blocking the caller."""

    def __init__(self, transports: Optional[List[EventTransport]] = None):
        self.transports = transports or []
        self._pending: Set[asyncio.Task] = set()

    def add_transport(self, transport: EventTransport):
        self.transports.append(transport)

    def emit(self, event: Any):
        for transport in self.transports:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop: events outside the runner are dropped
                return
            task = loop.create_task(transport.emit(event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def flush(self):
        """Wait for every scheduled transport call to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
