"""Playback state machine.

`PlaybackStateMachine.transition` is the only writer of the canonical
`PlayerState`. Triggers come from two sources: user commands issued by the
session, and stream engine status reports relayed by the session's inbox.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from radio_player.models import LOADING, PLAYING, STOPPED, PlayerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trigger:
    """Marker base type for state machine inputs."""


@dataclass(frozen=True)
class PlayRequested(Trigger):
    pass


@dataclass(frozen=True)
class PauseRequested(Trigger):
    pass


@dataclass(frozen=True)
class ResumeRequested(Trigger):
    pass


@dataclass(frozen=True)
class StopRequested(Trigger):
    pass


@dataclass(frozen=True)
class OpenFailed(Trigger):
    """Stream could not be handed to the engine (bad URL, engine refused)."""

    message: str


@dataclass(frozen=True)
class ReadyReported(Trigger):
    pass


@dataclass(frozen=True)
class BufferingReported(Trigger):
    pass


@dataclass(frozen=True)
class FailureReported(Trigger):
    message: str


class PlaybackStateMachine:
    """Owns `PlayerState` and applies the transition table."""

    def __init__(self, initial_state: PlayerState = STOPPED) -> None:
        self._state = initial_state

    @property
    def state(self) -> PlayerState:
        return self._state

    def transition(self, trigger: Trigger) -> PlayerState | None:
        """Apply `trigger`; return the new state, or None if nothing changed."""
        current = self._state
        target = _next_state(current, trigger)
        if target is None or target == current:
            logger.debug("Trigger %s ignored in state %s", trigger, current)
            return None
        self._state = target
        logger.debug("State %s -> %s on %s", current, target, trigger)
        return target


def _next_state(current: PlayerState, trigger: Trigger) -> PlayerState | None:
    status = current.status
    if isinstance(trigger, PlayRequested):
        return LOADING
    if isinstance(trigger, StopRequested):
        return STOPPED
    if isinstance(trigger, (OpenFailed, FailureReported)):
        return PlayerState.error(trigger.message)
    if isinstance(trigger, PauseRequested):
        return STOPPED if status in {"playing", "loading"} else None
    if isinstance(trigger, ResumeRequested):
        return PLAYING if status in {"stopped", "error"} else None
    if isinstance(trigger, ReadyReported):
        # Stopped/error only leave through an explicit command.
        return PLAYING if status in {"loading", "playing"} else None
    if isinstance(trigger, BufferingReported):
        return LOADING if status in {"loading", "playing"} else None
    raise TypeError(f"Unknown trigger {trigger!r}")
