"""Tests for the playback transition table."""

from __future__ import annotations

import pytest

from radio_player.models import LOADING, PLAYING, STOPPED, PlayerState
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

ERROR = PlayerState.error("boom")
ALL_STATES = (STOPPED, LOADING, PLAYING, ERROR)


def _machine(state: PlayerState) -> PlaybackStateMachine:
    return PlaybackStateMachine(initial_state=state)


@pytest.mark.parametrize(
    ("start", "trigger", "expected"),
    [
        (STOPPED, PlayRequested(), LOADING),
        (PLAYING, PlayRequested(), LOADING),
        (ERROR, PlayRequested(), LOADING),
        (LOADING, ReadyReported(), PLAYING),
        (PLAYING, BufferingReported(), LOADING),
        (LOADING, FailureReported("dropped"), PlayerState.error("dropped")),
        (PLAYING, FailureReported("dropped"), PlayerState.error("dropped")),
        (STOPPED, FailureReported("dropped"), PlayerState.error("dropped")),
        (ERROR, FailureReported("other"), PlayerState.error("other")),
        (LOADING, OpenFailed("invalid URL"), PlayerState.error("invalid URL")),
        (PLAYING, PauseRequested(), STOPPED),
        (LOADING, PauseRequested(), STOPPED),
        (STOPPED, ResumeRequested(), PLAYING),
        (ERROR, ResumeRequested(), PLAYING),
        (PLAYING, StopRequested(), STOPPED),
        (LOADING, StopRequested(), STOPPED),
        (ERROR, StopRequested(), STOPPED),
    ],
)
def test_transition_table(
    start: PlayerState, trigger: Trigger, expected: PlayerState
) -> None:
    machine = _machine(start)
    assert machine.transition(trigger) == expected
    assert machine.state == expected


@pytest.mark.parametrize(
    ("start", "trigger"),
    [
        (STOPPED, ReadyReported()),
        (ERROR, ReadyReported()),
        (STOPPED, BufferingReported()),
        (ERROR, BufferingReported()),
        (STOPPED, PauseRequested()),
        (ERROR, PauseRequested()),
        (PLAYING, ResumeRequested()),
        (LOADING, ResumeRequested()),
    ],
)
def test_ignored_triggers_leave_state_unchanged(
    start: PlayerState, trigger: Trigger
) -> None:
    machine = _machine(start)
    assert machine.transition(trigger) is None
    assert machine.state == start


def test_repeated_trigger_reports_no_change() -> None:
    machine = _machine(LOADING)
    assert machine.transition(PlayRequested()) is None
    assert machine.transition(ReadyReported()) == PLAYING
    assert machine.transition(ReadyReported()) is None
    assert machine.transition(StopRequested()) == STOPPED
    assert machine.transition(StopRequested()) is None


def test_error_reaches_playing_only_through_a_command() -> None:
    machine = _machine(STOPPED)
    machine.transition(PlayRequested())
    machine.transition(FailureReported("dropped"))
    for trigger in (ReadyReported(), BufferingReported()):
        assert machine.transition(trigger) is None
    assert machine.state.is_error
    assert machine.transition(ResumeRequested()) == PLAYING


def test_stop_always_lands_in_stopped() -> None:
    for state in ALL_STATES:
        machine = _machine(state)
        machine.transition(StopRequested())
        assert machine.state == STOPPED


def test_unknown_trigger_is_rejected() -> None:
    class Bogus(Trigger):
        pass

    with pytest.raises(TypeError):
        _machine(STOPPED).transition(Bogus())
