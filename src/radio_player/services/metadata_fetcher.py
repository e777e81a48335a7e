"""Now-playing metadata fetch and normalization.

Stations publish "now playing" through whatever server software they run, so
the payload shape is not under our control. `parse_now_playing` tries the known
shapes in a fixed priority order and returns the first match:

1. Direct: top-level ``title`` (plus ``artist`` and ``artwork``/``art``).
2. Nested song (AzuraCast style): ``now_playing.song.{title,artist,art}``.
3. Combined string (Icecast/Shoutcast style): ``songtitle`` or ``song``
   holding ``"Artist - Title"``.

Anything else yields an empty `NowPlayingInfo`; an unknown shape is not an
error.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from radio_player.models import NowPlayingInfo

logger = logging.getLogger(__name__)

COMBINED_SEPARATOR = " - "
DEFAULT_FETCH_TIMEOUT_S = 10.0


class FetchError(Exception):
    """Metadata endpoint unreachable or returned something other than JSON."""


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _parse_direct(payload: Mapping[str, Any]) -> NowPlayingInfo | None:
    title = _text(payload.get("title"))
    if title is None:
        return None
    artwork = _text(payload.get("artwork"))
    if artwork is None:
        artwork = _text(payload.get("art"))
    return NowPlayingInfo(
        title=title, artist=_text(payload.get("artist")), artwork_url=artwork
    )


def _parse_nested_song(payload: Mapping[str, Any]) -> NowPlayingInfo | None:
    now_playing = payload.get("now_playing")
    if not isinstance(now_playing, Mapping):
        return None
    song = now_playing.get("song")
    if not isinstance(song, Mapping):
        return None
    return NowPlayingInfo(
        title=_text(song.get("title")),
        artist=_text(song.get("artist")),
        artwork_url=_text(song.get("art")),
    )


def _parse_combined_string(payload: Mapping[str, Any]) -> NowPlayingInfo | None:
    combined = _text(payload.get("songtitle"))
    if combined is None:
        combined = _text(payload.get("song"))
    if combined is None:
        return None
    parts = combined.split(COMBINED_SEPARATOR)
    if len(parts) >= 2:
        return NowPlayingInfo(title=parts[1], artist=parts[0])
    return NowPlayingInfo(title=combined)


_SHAPE_PARSERS: tuple[Callable[[Mapping[str, Any]], NowPlayingInfo | None], ...] = (
    _parse_direct,
    _parse_nested_song,
    _parse_combined_string,
)


def parse_now_playing(payload: Any) -> NowPlayingInfo:
    """Normalize a decoded JSON document into `NowPlayingInfo`."""
    if not isinstance(payload, Mapping):
        return NowPlayingInfo()
    for parser in _SHAPE_PARSERS:
        info = parser(payload)
        if info is not None:
            return info
    return NowPlayingInfo()


class MetadataFetcher:
    """Fetches one station's now-playing endpoint over HTTP GET."""

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=max(0.1, float(timeout_s)))

    async def fetch(self, endpoint_url: str | None) -> NowPlayingInfo:
        if not endpoint_url or not endpoint_url.strip():
            return NowPlayingInfo()
        session = self._get_session()
        try:
            async with session.get(endpoint_url, timeout=self._timeout) as response:
                response.raise_for_status()
                body = await response.read()
        except aiohttp.ClientError as exc:
            raise FetchError(f"GET {endpoint_url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise FetchError(f"GET {endpoint_url} timed out") from exc
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise FetchError(f"GET {endpoint_url} returned non-JSON body") from exc
        info = parse_now_playing(payload)
        if info.is_empty:
            logger.debug("Unrecognized now-playing payload from %s", endpoint_url)
        return info

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session
