"""System media-control surface contract.

The surface (lock screen, headset buttons, desktop media keys) is external. It
receives now-playing pushes from the session and forwards user commands back
through the registered handler.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

MediaCommand = Literal["play", "pause", "stop", "toggle"]
MEDIA_COMMANDS: tuple[MediaCommand, ...] = ("play", "pause", "stop", "toggle")

MediaCommandHandler = Callable[[MediaCommand], Awaitable[None]]


@dataclass(frozen=True)
class NowPlayingDisplay:
    """Payload pushed to the surface while a station is live."""

    title: str
    artist: str
    album: str
    artwork_url: str | None = None
    is_live_stream: bool = True


class MediaControlSurface(Protocol):
    def set_command_handler(self, handler: MediaCommandHandler) -> None: ...

    def show(self, display: NowPlayingDisplay) -> None: ...

    def clear(self) -> None: ...


class LoggingMediaControlSurface:
    """Surface for headless runs: records and logs what would be displayed."""

    def __init__(self) -> None:
        self._handler: MediaCommandHandler | None = None
        self.display: NowPlayingDisplay | None = None

    def set_command_handler(self, handler: MediaCommandHandler) -> None:
        self._handler = handler

    def show(self, display: NowPlayingDisplay) -> None:
        if display == self.display:
            return
        self.display = display
        logger.info(
            "Now playing: %s - %s [%s]", display.artist, display.title, display.album
        )

    def clear(self) -> None:
        if self.display is not None:
            logger.debug("Media controls cleared.")
        self.display = None

    async def send(self, command: MediaCommand) -> None:
        """Forward a hardware/remote command to the session."""
        if command not in MEDIA_COMMANDS:
            raise ValueError(f"Unknown media command {command!r}")
        if self._handler is None:
            logger.debug("Dropping media command %s: no handler registered.", command)
            return
        await self._handler(command)
