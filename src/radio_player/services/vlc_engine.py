"""VLC stream engine using python-vlc."""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, Literal, cast

from .stream_engine import (
    EngineBuffering,
    EngineEvent,
    EngineEventHandler,
    EngineFailed,
    EngineReady,
)

logger = logging.getLogger(__name__)

VlcStatus = Literal["idle", "buffering", "playing", "paused", "failed", "ended"]


@dataclass
class _Command:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future[Any] | None


class VLCStreamEngine:
    """Stream engine backed by a dedicated VLC thread.

    libVLC is only touched from that thread; status changes are handed back to
    the event loop with `run_coroutine_threadsafe`.
    """

    def __init__(self, *, poll_interval_ms: int = 200) -> None:
        self._poll_interval = poll_interval_ms / 1000
        self._handler: EngineEventHandler | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: queue.Queue[_Command] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._stream_id: int | None = None

    def set_event_handler(self, handler: EngineEventHandler) -> None:
        self._handler = handler

    async def start(self) -> None:
        if self._thread is not None:
            return
        self._loop = asyncio.get_running_loop()
        ready_future: asyncio.Future[None] = self._loop.create_future()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            args=(ready_future,),
            name="VLCEngineThread",
            daemon=True,
        )
        self._thread.start()
        await ready_future

    async def shutdown(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._queue.put(_Command("wake", (), None))
        self._thread.join(timeout=2.0)
        self._thread = None

    async def open(self, stream_id: int, url: str) -> None:
        await self._submit("open", stream_id, url)

    async def pause(self) -> None:
        await self._submit("pause")

    async def resume(self) -> None:
        await self._submit("resume")

    async def close(self) -> None:
        await self._submit("close")

    async def set_volume(self, volume: float) -> None:
        await self._submit("set_volume", volume)

    async def _submit(self, name: str, *args: Any) -> Any:
        if self._loop is None:
            raise RuntimeError("VLC engine not started.")
        future: asyncio.Future[Any] = self._loop.create_future()
        self._queue.put(_Command(name, args, future))
        return await future

    def _thread_main(self, ready_future: asyncio.Future[None]) -> None:
        try:
            import vlc

            instance = vlc.Instance("--no-video")
            player = instance.media_player_new()
        except Exception as exc:  # pragma: no cover - depends on VLC install
            self._notify_future_exception(
                ready_future,
                RuntimeError(
                    "VLC engine unavailable. Ensure VLC/libVLC is installed."
                ),
            )
            logger.error("libVLC initialisation failed: %s", exc)
            return

        self._notify_future_result(ready_future, None)
        last_status: VlcStatus = "idle"

        while not self._stop_event.is_set():
            try:
                cmd = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                cmd = None

            if cmd is not None and cmd.name != "wake":
                try:
                    result = self._handle_command(cmd, instance, player)
                    self._notify_future_result(cmd.future, result)
                except Exception as exc:  # pragma: no cover - engine safety net
                    self._notify_future_exception(cmd.future, exc)
                if cmd.name in {"open", "close"}:
                    last_status = "idle"

            if self._stream_id is None:
                continue
            status = _map_status(player)
            if status != last_status:
                last_status = status
                event = _event_for_status(status, self._stream_id)
                if event is not None:
                    self._emit_event(event)

        player.stop()

    def _handle_command(self, cmd: _Command, instance: Any, player: Any) -> Any:
        name = cmd.name
        if name == "open":
            stream_id, url = cmd.args
            player.stop()
            media = instance.media_new(url)
            player.set_media(media)
            self._stream_id = int(stream_id)
            player.play()
            return None
        if name == "pause":
            player.set_pause(1)
            return None
        if name == "resume":
            player.set_pause(0)
            return None
        if name == "close":
            self._stream_id = None
            player.stop()
            return None
        if name == "set_volume":
            (volume,) = cmd.args
            player.audio_set_volume(int(round(max(0.0, min(float(volume), 1.0)) * 100)))
            return None
        raise ValueError(f"Unknown command {name}")

    def _emit_event(self, event: EngineEvent) -> None:
        if self._handler is None or self._loop is None:
            return
        coro = self._handler(event)
        asyncio.run_coroutine_threadsafe(
            cast(Coroutine[Any, Any, None], coro), self._loop
        )

    def _notify_future_result(
        self, future: asyncio.Future[Any] | None, value: Any
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(_resolve_future_result, future, value)

    def _notify_future_exception(
        self, future: asyncio.Future[Any] | None, exc: Exception
    ) -> None:
        if future is None or self._loop is None:
            return
        self._loop.call_soon_threadsafe(_resolve_future_exception, future, exc)


def _resolve_future_result(future: asyncio.Future[Any], value: Any) -> None:
    if not future.done():
        future.set_result(value)


def _resolve_future_exception(future: asyncio.Future[Any], exc: Exception) -> None:
    if not future.done():
        future.set_exception(exc)


def _map_status(player: Any) -> VlcStatus:
    try:
        state = player.get_state()
    except Exception:
        return "failed"
    name = getattr(state, "name", "").lower()
    if name == "playing":
        return "playing"
    if name == "paused":
        return "paused"
    if name in {"opening", "buffering"}:
        return "buffering"
    if name == "ended":
        return "ended"
    if name == "error":
        return "failed"
    return "idle"


def _event_for_status(status: VlcStatus, stream_id: int) -> EngineEvent | None:
    if status == "playing":
        return EngineReady(stream_id)
    if status == "buffering":
        return EngineBuffering(stream_id)
    if status == "failed":
        return EngineFailed(stream_id, "VLC could not play the stream.")
    if status == "ended":
        # Live streams never end on their own; the server dropped us.
        return EngineFailed(stream_id, "Stream ended unexpectedly.")
    return None
