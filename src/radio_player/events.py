"""Service events delivered to session observers, in production order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from radio_player.models import NowPlayingInfo, PlayerState, Station


@dataclass(frozen=True)
class PlayerStateChanged:
    """Service event emitted when the effective player state changes."""

    state: PlayerState


@dataclass(frozen=True)
class StationChanged:
    """Service event emitted when play() selects a station."""

    station: Station


@dataclass(frozen=True)
class NowPlayingChanged:
    """Service event emitted when now-playing metadata is applied or cleared."""

    now_playing: NowPlayingInfo | None


@dataclass(frozen=True)
class RecentStationsChanged:
    """Service event emitted when the recently-played list gains a station."""

    stations: tuple[Station, ...]


@dataclass(frozen=True)
class VolumeChanged:
    volume: float
