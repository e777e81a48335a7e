"""Command-line interface for radio-player."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from urllib.parse import urlsplit

from . import __version__
from .events import NowPlayingChanged, PlayerStateChanged
from .logging_utils import setup_logging
from .models import Station
from .paths import log_dir
from .runtime_config import (
    BACKEND_NAMES,
    SessionConfig,
    normalize_poll_interval,
    resolve_backend_name,
    resolve_log_level,
)
from .services.fake_engine import FakeStreamEngine
from .services.metadata_fetcher import MetadataFetcher
from .services.playback_session import LIVE_TITLE, UNKNOWN_ARTIST, PlaybackSession
from .services.vlc_engine import VLCStreamEngine

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="radio-player",
        description="Play an internet radio stream and follow its now-playing info.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        help="Stream engine to use (fake or vlc).",
    )
    parser.add_argument("stream_url", nargs="?", help="Stream URL to play")
    parser.add_argument(
        "--station-json",
        help="Path to a catalog station record (JSON object) to play instead",
    )
    parser.add_argument("--metadata-url", help="Now-playing JSON endpoint")
    parser.add_argument("--title", help="Station title shown in media controls")
    parser.add_argument(
        "--poll-interval",
        type=float,
        help="Seconds between now-playing refreshes (default 30)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (default: run until Ctrl-C)",
    )
    parser.add_argument("--volume", type=float, help="Volume between 0.0 and 1.0")
    return parser


def load_station(args: argparse.Namespace) -> Station:
    """Build the station to play from CLI arguments."""
    if args.station_json:
        data = json.loads(Path(args.station_json).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Station JSON must contain a single object.")
        station = Station.from_catalog_json(data)
        if args.metadata_url:
            station = replace(station, metadata_url=args.metadata_url)
        return station
    if not args.stream_url:
        raise ValueError("Provide a stream URL or --station-json.")
    title = args.title or urlsplit(args.stream_url).netloc or args.stream_url
    return Station(
        title=title,
        stream_url=args.stream_url,
        metadata_url=args.metadata_url or "",
    )


def _build_engine(name: str) -> FakeStreamEngine | VLCStreamEngine:
    logger.info("Stream engine selected: %s", name)
    if name == "vlc":
        return VLCStreamEngine()
    return FakeStreamEngine()


async def _print_event(event: object) -> None:
    if isinstance(event, PlayerStateChanged):
        print(f"[{event.state}]")
    elif isinstance(event, NowPlayingChanged) and event.now_playing is not None:
        info = event.now_playing
        artist = info.artist or UNKNOWN_ARTIST
        print(f"Now playing: {artist} - {info.title or LIVE_TITLE}")


async def run_session(
    station: Station,
    *,
    backend: str,
    config: SessionConfig,
    duration_s: float | None = None,
    volume: float | None = None,
) -> int:
    """Play `station` until `duration_s` elapses (or forever); return exit code."""
    fetcher = MetadataFetcher(timeout_s=config.fetch_timeout_s)
    session = PlaybackSession(
        engine=_build_engine(backend),
        fetch_now_playing=fetcher.fetch,
        emit_event=_print_event,
        config=config,
    )
    try:
        try:
            await session.start()
        except Exception as exc:
            if backend == "fake":
                raise
            logger.exception("Failed to start stream engine %s: %s", backend, exc)
            print(
                "VLC engine unavailable; using fake engine.\n"
                "Next step: install VLC/libVLC, then retry with --backend vlc.",
                file=sys.stderr,
            )
            await session.shutdown()
            session = PlaybackSession(
                engine=_build_engine("fake"),
                fetch_now_playing=fetcher.fetch,
                emit_event=_print_event,
                config=config,
            )
            await session.start()
        if volume is not None:
            await session.set_volume(volume)
        await session.play(station)
        if duration_s is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(max(0.0, duration_s))
        await session.wait_idle()
        failed = session.state.is_error
        await session.stop()
        await session.wait_idle()
        return 1 if failed else 0
    finally:
        await session.shutdown()
        await fetcher.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        config = SessionConfig(
            poll_interval_s=normalize_poll_interval(args.poll_interval)
        )
        station = load_station(args)
        logger.info("Starting radio-player CLI")
        return asyncio.run(
            run_session(
                station,
                backend=resolve_backend_name(args.backend),
                config=config,
                duration_s=args.duration,
                volume=args.volume,
            )
        )
    except KeyboardInterrupt:
        print("Stopped.")
        return 0
    except (OSError, ValueError) as exc:
        logger.error("Cannot start playback: %s", exc)
        print(f"radio-player: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
