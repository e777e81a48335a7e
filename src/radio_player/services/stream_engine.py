"""Stream engine contracts and event payloads.

`PlaybackSession` depends on this protocol to stay engine-agnostic. Concrete
implementations (fake/VLC) translate engine-specific status into these shared
commands and events. Every event names the `stream_id` it was opened with so
the session can drop reports that belong to a superseded stream.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class EngineEvent:
    """Marker base type for engine-originated status reports."""

    stream_id: int


@dataclass(frozen=True)
class EngineReady(EngineEvent):
    """Stream is decoded and audible."""


@dataclass(frozen=True)
class EngineBuffering(EngineEvent):
    """Stream is opening or refilling its buffer (status unknown)."""


@dataclass(frozen=True)
class EngineFailed(EngineEvent):
    """Transport or decode failure for the stream."""

    message: str


EngineEventHandler = Callable[[EngineEvent], Awaitable[None]]


class StreamEngine(Protocol):
    """Audio stream engine protocol consumed by `PlaybackSession`.

    Commands are fire-and-forget from the session's point of view; outcomes
    arrive later through the event handler.
    """

    def set_event_handler(self, handler: EngineEventHandler) -> None: ...

    async def start(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def open(self, stream_id: int, url: str) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def close(self) -> None: ...

    async def set_volume(self, volume: float) -> None: ...
