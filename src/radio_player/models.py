"""Domain records shared by the session, engines, and observers.

Catalog records arrive as untyped JSON; `Station.from_catalog_json` is tolerant
of missing/mistyped fields so a single bad record never aborts a listing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

Status = Literal["stopped", "loading", "playing", "error"]


@dataclass(frozen=True)
class Station:
    """Catalog entry describing one internet radio source."""

    title: str
    stream_url: str
    metadata_url: str = ""
    subtitle: str = ""
    listener_count: int = 0
    logo_url: str = ""
    genres: tuple[str, ...] = ()
    countries: tuple[str, ...] = ()

    @property
    def identifier(self) -> str:
        # The catalog API has no opaque id; titles are assumed unique.
        return self.title

    @property
    def has_metadata_endpoint(self) -> bool:
        return bool(self.metadata_url.strip())

    @classmethod
    def from_catalog_json(cls, data: Mapping[str, Any]) -> Station:
        """Coerce one catalog JSON record into a `Station` with safe defaults."""

        def _str_or_default(value: Any, default: str = "") -> str:
            if isinstance(value, str):
                return value
            return default

        def _int_or_default(value: Any, default: int = 0) -> int:
            if isinstance(value, bool):
                return default
            if isinstance(value, int):
                return max(0, value)
            return default

        def _tag_names(value: Any) -> tuple[str, ...]:
            if not isinstance(value, list):
                return ()
            names: list[str] = []
            for entry in value:
                if isinstance(entry, Mapping):
                    entry = entry.get("name")
                if isinstance(entry, str) and entry.strip():
                    names.append(entry)
            return tuple(names)

        return cls(
            title=_str_or_default(data.get("title")),
            stream_url=_str_or_default(data.get("url_streaming")),
            metadata_url=_str_or_default(data.get("url_api")),
            subtitle=_str_or_default(data.get("description")),
            listener_count=_int_or_default(data.get("views")),
            logo_url=_str_or_default(data.get("url_logo")),
            genres=_tag_names(data.get("genres")),
            countries=_tag_names(data.get("countries")),
        )


@dataclass(frozen=True)
class NowPlayingInfo:
    """Currently airing track; `None` fields mean unknown."""

    title: str | None = None
    artist: str | None = None
    artwork_url: str | None = None

    def __post_init__(self) -> None:
        # Blank strings from third-party servers carry no information.
        for name in ("title", "artist", "artwork_url"):
            value = getattr(self, name)
            if isinstance(value, str) and not value.strip():
                object.__setattr__(self, name, None)

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.artist is None and self.artwork_url is None


@dataclass(frozen=True)
class PlayerState:
    """What the session is doing right now; exactly one status at a time."""

    status: Status = "stopped"
    message: str | None = None

    @classmethod
    def error(cls, message: str) -> PlayerState:
        return cls(status="error", message=message)

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    def __str__(self) -> str:
        if self.message is not None:
            return f"{self.status}({self.message})"
        return self.status


STOPPED = PlayerState("stopped")
LOADING = PlayerState("loading")
PLAYING = PlayerState("playing")
