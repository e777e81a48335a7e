"""Live playback session orchestration between user intent and the stream engine.

`PlaybackSession` is the single owner of session state: current station,
recently played stations, now-playing metadata, volume, and (through
`PlaybackStateMachine`) the player state. Everything runs on one event loop:

- Engine status reports land on an inbox queue and are applied by one task,
  so they serialize with user commands.
- Observer events go through an outbox queue drained by one task, so
  observers see them in production order and may call back into the session.
- Every play()/stop() bumps a generation counter. Metadata fetches and engine
  streams are tagged with the generation they were started for, and results
  for an older generation are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from contextlib import suppress
from dataclasses import dataclass
from functools import partial
from typing import Callable
from urllib.parse import urlsplit

from radio_player.events import (
    NowPlayingChanged,
    PlayerStateChanged,
    RecentStationsChanged,
    StationChanged,
    VolumeChanged,
)
from radio_player.models import NowPlayingInfo, PlayerState, Station
from radio_player.runtime_config import SessionConfig
from radio_player.services.media_controls import (
    LoggingMediaControlSurface,
    MediaCommand,
    MediaControlSurface,
    NowPlayingDisplay,
)
from radio_player.services.metadata_fetcher import FetchError
from radio_player.services.metadata_poller import MetadataPoller
from radio_player.services.state_machine import (
    BufferingReported,
    FailureReported,
    OpenFailed,
    PauseRequested,
    PlaybackStateMachine,
    PlayRequested,
    ReadyReported,
    ResumeRequested,
    StopRequested,
    Trigger,
)
from radio_player.services.stream_engine import (
    EngineBuffering,
    EngineEvent,
    EngineFailed,
    EngineReady,
    StreamEngine,
)

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "invalid URL"
NO_STATION_TITLE = "No station"
UNKNOWN_ARTIST = "Unknown artist"
LIVE_TITLE = "Live"


def is_valid_stream_url(url: str) -> bool:
    """Return True when `url` is absolute (scheme and host) and whitespace-free."""
    candidate = url.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of session state for observers."""

    player_state: PlayerState
    current_station: Station | None
    now_playing: NowPlayingInfo | None
    recent_stations: tuple[Station, ...]
    volume: float

    @property
    def is_playing(self) -> bool:
        return self.player_state.status == "playing"

    @property
    def is_loading(self) -> bool:
        return self.player_state.status == "loading"

    @property
    def has_station(self) -> bool:
        return self.current_station is not None


class PlaybackSession:
    """Owns the live playback session and emits events to subscribers."""

    def __init__(
        self,
        *,
        engine: StreamEngine,
        fetch_now_playing: Callable[[str], Awaitable[NowPlayingInfo]],
        media_controls: MediaControlSurface | None = None,
        emit_event: Callable[[object], Awaitable[None]] | None = None,
        config: SessionConfig | None = None,
        poller: MetadataPoller | None = None,
    ) -> None:
        self._config = config or SessionConfig()
        self._engine = engine
        self._fetch_now_playing = fetch_now_playing
        self._media_controls: MediaControlSurface = (
            media_controls or LoggingMediaControlSurface()
        )
        self._emit_event = emit_event
        self._poller = poller or MetadataPoller(
            interval_s=self._config.poll_interval_s
        )
        self._state_machine = PlaybackStateMachine()
        self._current_station: Station | None = None
        self._now_playing: NowPlayingInfo | None = None
        self._recent_stations: list[Station] = []
        self._volume = self._config.default_volume
        self._generation = 0
        self._stream_open = False
        self._inbox: asyncio.Queue[EngineEvent] = asyncio.Queue()
        self._outbox: asyncio.Queue[object] = asyncio.Queue()
        self._inbox_task: asyncio.Task[None] | None = None
        self._outbox_task: asyncio.Task[None] | None = None
        self._fetch_tasks: set[asyncio.Task[None]] = set()
        self._engine.set_event_handler(self._on_engine_event)
        self._media_controls.set_command_handler(self.handle_media_command)

    @property
    def state(self) -> PlayerState:
        return self._state_machine.state

    @property
    def current_station(self) -> Station | None:
        return self._current_station

    @property
    def now_playing(self) -> NowPlayingInfo | None:
        return self._now_playing

    @property
    def recent_stations(self) -> tuple[Station, ...]:
        return tuple(self._recent_stations)

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def is_playing(self) -> bool:
        return self.state.status == "playing"

    @property
    def is_loading(self) -> bool:
        return self.state.status == "loading"

    @property
    def has_station(self) -> bool:
        return self._current_station is not None

    @property
    def display_title(self) -> str:
        if self._now_playing is not None and self._now_playing.title:
            return self._now_playing.title
        if self._current_station is not None and self._current_station.title:
            return self._current_station.title
        return NO_STATION_TITLE

    @property
    def display_artist(self) -> str:
        if self._now_playing is not None and self._now_playing.artist:
            return self._now_playing.artist
        if self._current_station is not None and self._current_station.subtitle:
            return self._current_station.subtitle
        return UNKNOWN_ARTIST

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            player_state=self.state,
            current_station=self._current_station,
            now_playing=self._now_playing,
            recent_stations=tuple(self._recent_stations),
            volume=self._volume,
        )

    async def start(self) -> None:
        """Start the engine and the inbox/outbox consumer tasks."""
        await self._engine.start()
        await self._engine.set_volume(self._volume)
        if self._inbox_task is None:
            self._inbox_task = asyncio.create_task(self._pump_engine_events())
        if self._outbox_task is None and self._emit_event is not None:
            self._outbox_task = asyncio.create_task(self._dispatch_events())

    async def shutdown(self) -> None:
        """Stop polling and consumer tasks and perform best-effort engine shutdown."""
        await self._poller.aclose()
        self._cancel_fetches()
        for task in (self._inbox_task, self._outbox_task):
            if task is None:
                continue
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._inbox_task = None
        self._outbox_task = None
        self._stream_open = False
        with suppress(Exception):
            await self._engine.shutdown()

    async def wait_idle(self) -> None:
        """Wait until queued engine events, observer events and fetches drain."""
        while True:
            if self._fetch_tasks:
                await asyncio.gather(*list(self._fetch_tasks), return_exceptions=True)
            if self._inbox_task is not None:
                await self._inbox.join()
            if self._outbox_task is not None:
                await self._outbox.join()
            if not self._fetch_tasks and (
                self._inbox_task is None or self._inbox.empty()
            ):
                if self._outbox_task is None or self._outbox.empty():
                    return

    async def play(self, station: Station) -> None:
        """Select `station`, record it in history, and open its stream."""
        logger.info("Playing station %r (%s)", station.title, station.stream_url)
        self._current_station = station
        self._publish(StationChanged(station))
        if self._remember(station):
            self._publish(RecentStationsChanged(tuple(self._recent_stations)))
        self._set_now_playing(None)
        await self._open_stream(station)

    async def pause(self) -> None:
        self._apply(PauseRequested())
        if self._stream_open:
            await self._engine.pause()

    async def resume(self) -> None:
        station = self._current_station
        if station is None:
            logger.debug("Resume ignored: no station selected.")
            return
        status = self.state.status
        if status in {"playing", "loading"}:
            return
        if status == "stopped" and self._stream_open:
            self._apply(ResumeRequested())
            await self._engine.resume()
            return
        # The stream was released by stop() or died with an error: reconnect.
        await self._open_stream(station)

    async def stop(self) -> None:
        """Stop polling, release the stream, and clear now-playing."""
        self._generation += 1
        self._poller.stop()
        self._cancel_fetches()
        self._set_now_playing(None)
        self._clear_media_controls()
        self._apply(StopRequested())
        if self._stream_open:
            self._stream_open = False
            await self._engine.close()

    async def toggle_play_pause(self) -> None:
        if self.is_playing:
            await self.pause()
        else:
            await self.resume()

    async def set_volume(self, volume: float) -> None:
        clamped = _clamp_float(float(volume), 0.0, 1.0)
        if clamped == self._volume:
            return
        self._volume = clamped
        self._publish(VolumeChanged(clamped))
        await self._engine.set_volume(clamped)

    async def handle_media_command(self, command: MediaCommand) -> None:
        """Handle a command forwarded by the system media-control surface."""
        logger.debug("Media command: %s", command)
        if command == "play":
            await self.resume()
        elif command == "pause":
            await self.pause()
        elif command == "stop":
            await self.stop()
        elif command == "toggle":
            await self.toggle_play_pause()
        else:
            raise ValueError(f"Unknown media command {command!r}")

    async def _open_stream(self, station: Station) -> None:
        self._generation += 1
        generation = self._generation
        self._poller.stop()
        self._cancel_fetches()
        self._apply(PlayRequested())
        if station.has_metadata_endpoint:
            self._schedule_fetch(generation, station.metadata_url)
        if not is_valid_stream_url(station.stream_url):
            logger.warning(
                "Station %r has an invalid stream URL: %r",
                station.title,
                station.stream_url,
            )
            self._apply(OpenFailed(INVALID_URL_MESSAGE))
            if self._stream_open:
                # Do not leave the previous station audible behind the error.
                self._stream_open = False
                await self._engine.close()
            return
        self._stream_open = True
        try:
            await self._engine.open(generation, station.stream_url)
        except Exception as exc:
            logger.warning("Stream engine refused %s: %s", station.stream_url, exc)
            if generation == self._generation:
                self._stream_open = False
                self._apply(OpenFailed(str(exc) or type(exc).__name__))

    def _remember(self, station: Station) -> bool:
        identifier = station.identifier
        if any(item.identifier == identifier for item in self._recent_stations):
            return False
        self._recent_stations.insert(0, station)
        del self._recent_stations[self._config.history_limit :]
        return True

    def _apply(self, trigger: Trigger) -> PlayerState | None:
        previous = self._state_machine.state
        state = self._state_machine.transition(trigger)
        if state is None:
            return None
        self._publish(PlayerStateChanged(state))
        if state.status == "playing" and previous.status != "playing":
            self._on_entered_playing()
        elif state.is_error:
            logger.warning("Playback error: %s", state.message)
        return state

    def _on_entered_playing(self) -> None:
        station = self._current_station
        self._push_media_controls()
        if station is None or not station.has_metadata_endpoint:
            self._poller.stop()
            return
        self._poller.start(
            partial(self._refresh_now_playing, self._generation, station.metadata_url)
        )

    async def _on_engine_event(self, event: EngineEvent) -> None:
        # May run from a callback chain; only enqueue here.
        self._inbox.put_nowait(event)

    async def _pump_engine_events(self) -> None:
        while True:
            event = await self._inbox.get()
            try:
                self._apply_engine_event(event)
            except Exception:
                logger.exception("Failed to apply engine event %s", event)
            finally:
                self._inbox.task_done()

    def _apply_engine_event(self, event: EngineEvent) -> None:
        if not self._stream_open or event.stream_id != self._generation:
            logger.debug("Dropping engine event for stale stream: %s", event)
            return
        trigger: Trigger
        if isinstance(event, EngineReady):
            trigger = ReadyReported()
        elif isinstance(event, EngineBuffering):
            trigger = BufferingReported()
        elif isinstance(event, EngineFailed):
            trigger = FailureReported(event.message)
        else:
            logger.debug("Ignoring unknown engine event %s", event)
            return
        self._apply(trigger)

    def _schedule_fetch(self, generation: int, endpoint_url: str) -> None:
        task = asyncio.create_task(
            self._refresh_now_playing(generation, endpoint_url)
        )
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    def _cancel_fetches(self) -> None:
        for task in list(self._fetch_tasks):
            task.cancel()

    async def _refresh_now_playing(self, generation: int, endpoint_url: str) -> None:
        try:
            info = await self._fetch_now_playing(endpoint_url)
        except FetchError as exc:
            logger.warning("Now-playing fetch failed: %s", exc)
            return
        except Exception:
            logger.exception("Unexpected now-playing failure for %s", endpoint_url)
            return
        if generation != self._generation:
            logger.debug("Discarding stale now-playing result from %s", endpoint_url)
            return
        if info.is_empty:
            return
        self._set_now_playing(info)
        self._push_media_controls()

    def _set_now_playing(self, info: NowPlayingInfo | None) -> None:
        if info == self._now_playing:
            return
        self._now_playing = info
        self._publish(NowPlayingChanged(info))

    def _push_media_controls(self) -> None:
        station = self._current_station
        if station is None:
            return
        info = self._now_playing
        display = NowPlayingDisplay(
            title=info.title if info is not None and info.title else LIVE_TITLE,
            artist=info.artist if info is not None and info.artist else station.title,
            album=station.title,
            artwork_url=info.artwork_url if info is not None else None,
        )
        try:
            self._media_controls.show(display)
        except Exception:
            logger.exception("Media control surface rejected now-playing update")

    def _clear_media_controls(self) -> None:
        try:
            self._media_controls.clear()
        except Exception:
            logger.exception("Media control surface failed to clear")

    def _publish(self, event: object) -> None:
        if self._emit_event is None:
            return
        self._outbox.put_nowait(event)

    async def _dispatch_events(self) -> None:
        emit_event = self._emit_event
        if emit_event is None:
            return
        while True:
            event = await self._outbox.get()
            try:
                await emit_event(event)
            except Exception:
                logger.exception("Observer failed handling %s", type(event).__name__)
            finally:
                self._outbox.task_done()


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
