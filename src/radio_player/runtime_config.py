"""Runtime configuration and normalization helpers.

These helpers keep CLI flag interpretation deterministic. Nothing here is
persisted; every run starts from `SessionConfig` defaults plus flags.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

BACKEND_NAMES = ("fake", "vlc")
DEFAULT_BACKEND = "fake"
DEFAULT_POLL_INTERVAL_S = 30.0
MIN_POLL_INTERVAL_S = 1.0
MAX_POLL_INTERVAL_S = 3600.0


@dataclass(frozen=True)
class SessionConfig:
    """Tunables for `PlaybackSession` and its collaborators."""

    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    history_limit: int = 10
    fetch_timeout_s: float = 10.0
    default_volume: float = 0.6

    def __post_init__(self) -> None:
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be > 0")
        if self.history_limit < 1:
            raise ValueError("history_limit must be >= 1")
        if self.fetch_timeout_s <= 0:
            raise ValueError("fetch_timeout_s must be > 0")
        if not 0.0 <= self.default_volume <= 1.0:
            raise ValueError("default_volume must be within [0.0, 1.0]")


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def resolve_backend_name(value: str | None) -> str:
    """Normalize a CLI backend name, falling back to the fake engine."""
    if value is not None:
        normalized = value.strip().lower()
        if normalized in BACKEND_NAMES:
            return normalized
    return DEFAULT_BACKEND


def normalize_poll_interval(value: float | str | None) -> float:
    """Clamp a metadata poll interval to a sane range; invalid -> default."""
    if value is None or isinstance(value, bool):
        return DEFAULT_POLL_INTERVAL_S
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return DEFAULT_POLL_INTERVAL_S
    if not math.isfinite(seconds) or seconds <= 0:
        return DEFAULT_POLL_INTERVAL_S
    return max(MIN_POLL_INTERVAL_S, min(seconds, MAX_POLL_INTERVAL_S))
