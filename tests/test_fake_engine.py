"""Tests for the fake stream engine."""

from __future__ import annotations

import asyncio

from radio_player.services.fake_engine import FakeStreamEngine
from radio_player.services.stream_engine import (
    EngineBuffering,
    EngineEvent,
    EngineFailed,
    EngineReady,
)


def _run(coro):
    """Run async engine scenario from sync test functions."""
    return asyncio.run(coro)


def _recording(engine: FakeStreamEngine) -> list[EngineEvent]:
    events: list[EngineEvent] = []

    async def handler(event: EngineEvent) -> None:
        events.append(event)

    engine.set_event_handler(handler)
    return events


def test_open_without_delay_reports_buffering_then_ready() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine()
        events = _recording(engine)
        await engine.start()
        await engine.open(3, "http://radio.test/live")
        assert engine.status == "playing"
        assert engine.url == "http://radio.test/live"
        return events

    assert _run(run()) == [EngineBuffering(3), EngineReady(3)]


def test_failing_url_reports_failure_message() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine(
            failing_urls=("http://radio.test/dead",), failure_message="404"
        )
        events = _recording(engine)
        await engine.open(1, "http://radio.test/dead")
        assert engine.status == "failed"
        return events

    assert _run(run()) == [EngineBuffering(1), EngineFailed(1, "404")]


def test_reopen_cancels_pending_connect() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine(connect_delay_s=0.05)
        events = _recording(engine)
        await engine.open(1, "http://radio.test/a")
        await engine.open(2, "http://radio.test/b")
        await asyncio.sleep(0.1)
        await engine.shutdown()
        return events

    assert _run(run()) == [EngineBuffering(1), EngineBuffering(2), EngineReady(2)]


def test_pause_before_connect_suppresses_ready_until_resume() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine(connect_delay_s=0.02)
        events = _recording(engine)
        await engine.open(1, "http://radio.test/a")
        await engine.pause()
        await asyncio.sleep(0.05)
        assert engine.status == "paused"
        await engine.resume()
        assert engine.status == "playing"
        return events

    assert _run(run()) == [EngineBuffering(1), EngineReady(1)]


def test_close_resets_and_fail_without_stream_is_silent() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine()
        events = _recording(engine)
        await engine.open(1, "http://radio.test/a")
        await engine.close()
        assert engine.status == "idle"
        assert engine.url is None
        await engine.fail("gone")
        await engine.resume()
        return events

    assert _run(run()) == [EngineBuffering(1), EngineReady(1)]


def test_fail_reports_for_current_stream() -> None:
    async def run() -> list[EngineEvent]:
        engine = FakeStreamEngine()
        events = _recording(engine)
        await engine.open(4, "http://radio.test/a")
        await engine.fail("connection reset")
        assert engine.status == "failed"
        return events

    assert _run(run())[-1] == EngineFailed(4, "connection reset")


def test_volume_is_clamped() -> None:
    async def run() -> None:
        engine = FakeStreamEngine()
        await engine.set_volume(1.7)
        assert engine.volume == 1.0
        await engine.set_volume(-0.2)
        assert engine.volume == 0.0
        await engine.set_volume(0.35)
        assert engine.volume == 0.35

    _run(run())


def test_events_without_handler_are_dropped() -> None:
    async def run() -> None:
        engine = FakeStreamEngine()
        await engine.open(1, "http://radio.test/a")
        assert engine.status == "playing"

    _run(run())
