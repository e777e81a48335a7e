"""Tests for runtime config normalization."""

from __future__ import annotations

import pytest

from radio_player.runtime_config import (
    SessionConfig,
    normalize_poll_interval,
    resolve_backend_name,
    resolve_log_level,
)


def test_resolve_log_level_precedence() -> None:
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"


def test_resolve_backend_name_normalizes_and_falls_back() -> None:
    assert resolve_backend_name("vlc") == "vlc"
    assert resolve_backend_name(" VLC ") == "vlc"
    assert resolve_backend_name("fake") == "fake"
    assert resolve_backend_name("gstreamer") == "fake"
    assert resolve_backend_name(None) == "fake"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, 30.0),
        (True, 30.0),
        ("abc", 30.0),
        (float("nan"), 30.0),
        (float("inf"), 30.0),
        (0, 30.0),
        (-5, 30.0),
        (0.2, 1.0),
        ("15", 15.0),
        (45, 45.0),
        (99999, 3600.0),
    ],
)
def test_normalize_poll_interval(value, expected: float) -> None:
    assert normalize_poll_interval(value) == expected


def test_session_config_defaults() -> None:
    config = SessionConfig()
    assert config.poll_interval_s == 30.0
    assert config.history_limit == 10
    assert config.default_volume == 0.6


@pytest.mark.parametrize(
    "kwargs",
    [
        {"poll_interval_s": 0},
        {"history_limit": 0},
        {"fetch_timeout_s": -1},
        {"default_volume": 1.5},
    ],
)
def test_session_config_rejects_invalid_values(kwargs) -> None:
    with pytest.raises(ValueError):
        SessionConfig(**kwargs)
