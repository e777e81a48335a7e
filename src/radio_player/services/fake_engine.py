"""Fake stream engine for deterministic testing."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass
from typing import Literal

from .stream_engine import (
    EngineBuffering,
    EngineEvent,
    EngineEventHandler,
    EngineFailed,
    EngineReady,
)

FakeStatus = Literal["idle", "buffering", "playing", "paused", "failed"]


@dataclass
class _StreamState:
    status: FakeStatus = "idle"
    stream_id: int | None = None
    url: str | None = None
    volume: float = 1.0


class FakeStreamEngine:
    """In-memory engine that "connects" to any URL after `connect_delay_s`.

    URLs listed in `failing_urls` report `EngineFailed` instead of ready.
    """

    def __init__(
        self,
        *,
        connect_delay_s: float = 0.0,
        failing_urls: tuple[str, ...] = (),
        failure_message: str = "Stream unavailable",
    ) -> None:
        self._connect_delay_s = max(0.0, connect_delay_s)
        self._failing_urls = frozenset(failing_urls)
        self._failure_message = failure_message
        self._state = _StreamState()
        self._handler: EngineEventHandler | None = None
        self._lock = asyncio.Lock()
        self._connect_task: asyncio.Task[None] | None = None

    @property
    def status(self) -> FakeStatus:
        return self._state.status

    @property
    def url(self) -> str | None:
        return self._state.url

    @property
    def volume(self) -> float:
        return self._state.volume

    def set_event_handler(self, handler: EngineEventHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        return None

    async def shutdown(self) -> None:
        await self._cancel_connect()
        async with self._lock:
            self._state.status = "idle"
            self._state.stream_id = None
            self._state.url = None

    async def open(self, stream_id: int, url: str) -> None:
        await self._cancel_connect()
        async with self._lock:
            self._state.status = "buffering"
            self._state.stream_id = stream_id
            self._state.url = url
        await self._emit(EngineBuffering(stream_id))
        if not self._connect_delay_s:
            await self._connect(stream_id, url)
            return
        self._connect_task = asyncio.create_task(self._connect(stream_id, url))

    async def pause(self) -> None:
        async with self._lock:
            if self._state.status in {"playing", "buffering"}:
                self._state.status = "paused"

    async def resume(self) -> None:
        async with self._lock:
            if self._state.status != "paused" or self._state.stream_id is None:
                return
            self._state.status = "playing"
            stream_id = self._state.stream_id
        await self._emit(EngineReady(stream_id))

    async def close(self) -> None:
        await self._cancel_connect()
        async with self._lock:
            self._state.status = "idle"
            self._state.stream_id = None
            self._state.url = None

    async def set_volume(self, volume: float) -> None:
        async with self._lock:
            self._state.volume = _clamp_float(volume, 0.0, 1.0)

    async def fail(self, message: str) -> None:
        """Simulate a mid-stream transport drop for the current stream."""
        async with self._lock:
            stream_id = self._state.stream_id
            if stream_id is None:
                return
            self._state.status = "failed"
        await self._emit(EngineFailed(stream_id, message))

    async def _connect(self, stream_id: int, url: str) -> None:
        if self._connect_delay_s:
            await asyncio.sleep(self._connect_delay_s)
        async with self._lock:
            if self._state.stream_id != stream_id:
                return
            failed = url in self._failing_urls
            if self._state.status == "paused" and not failed:
                return
            self._state.status = "failed" if failed else "playing"
        if failed:
            await self._emit(EngineFailed(stream_id, self._failure_message))
        else:
            await self._emit(EngineReady(stream_id))

    async def _cancel_connect(self) -> None:
        task = self._connect_task
        self._connect_task = None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _emit(self, event: EngineEvent) -> None:
        if self._handler is None:
            return
        await self._handler(event)


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
