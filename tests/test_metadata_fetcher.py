"""Tests for HTTP now-playing fetches against a local aiohttp server."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from radio_player.models import NowPlayingInfo
from radio_player.services.metadata_fetcher import FetchError, MetadataFetcher


def _run(coro):
    """Run async fetch scenario from sync test functions."""
    return asyncio.run(coro)


async def _with_endpoint(handler, scenario, *, timeout_s: float = 2.0):
    """Serve `handler` at /np and run `scenario(fetcher, url)` against it."""
    app = web.Application()
    app.router.add_get("/np", handler)
    async with TestServer(app) as server:
        fetcher = MetadataFetcher(timeout_s=timeout_s)
        try:
            return await scenario(fetcher, str(server.make_url("/np")))
        finally:
            await fetcher.close()


def test_fetch_parses_json_regardless_of_content_type() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(
            text='{"songtitle": "Daft Punk - One More Time"}',
            content_type="text/plain",
        )

    async def scenario(fetcher: MetadataFetcher, url: str) -> NowPlayingInfo:
        return await fetcher.fetch(url)

    info = _run(_with_endpoint(handler, scenario))
    assert info == NowPlayingInfo(title="One More Time", artist="Daft Punk")


def test_fetch_unknown_shape_is_empty_not_error() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.json_response({"listeners": 12})

    async def scenario(fetcher: MetadataFetcher, url: str) -> NowPlayingInfo:
        return await fetcher.fetch(url)

    assert _run(_with_endpoint(handler, scenario)).is_empty


def test_fetch_non_json_body_raises_fetch_error() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.Response(text="<html>offline</html>", content_type="text/html")

    async def scenario(fetcher: MetadataFetcher, url: str) -> None:
        with pytest.raises(FetchError):
            await fetcher.fetch(url)

    _run(_with_endpoint(handler, scenario))


def test_fetch_http_error_status_raises_fetch_error() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.json_response({"title": "stale"}, status=503)

    async def scenario(fetcher: MetadataFetcher, url: str) -> None:
        with pytest.raises(FetchError):
            await fetcher.fetch(url)

    _run(_with_endpoint(handler, scenario))


def test_fetch_timeout_raises_fetch_error() -> None:
    async def handler(_request: web.Request) -> web.Response:
        await asyncio.sleep(1.0)
        return web.json_response({"title": "late"})

    async def scenario(fetcher: MetadataFetcher, url: str) -> None:
        with pytest.raises(FetchError):
            await fetcher.fetch(url)

    _run(_with_endpoint(handler, scenario, timeout_s=0.1))


def test_fetch_connection_refused_raises_fetch_error() -> None:
    async def run() -> None:
        fetcher = MetadataFetcher(timeout_s=2.0)
        try:
            with pytest.raises(FetchError):
                await fetcher.fetch("http://127.0.0.1:1/np")
        finally:
            await fetcher.close()

    _run(run())


def test_fetch_blank_endpoint_skips_network() -> None:
    async def run() -> None:
        fetcher = MetadataFetcher()
        assert (await fetcher.fetch("")).is_empty
        assert (await fetcher.fetch("   ")).is_empty
        assert (await fetcher.fetch(None)).is_empty
        assert fetcher._session is None  # noqa: SLF001
        await fetcher.close()

    _run(run())


def test_injected_session_is_not_closed_by_fetcher() -> None:
    async def handler(_request: web.Request) -> web.Response:
        return web.json_response({"title": "Song", "artist": "Band"})

    async def run() -> None:
        app = web.Application()
        app.router.add_get("/np", handler)
        async with TestServer(app) as server, aiohttp.ClientSession() as http:
            fetcher = MetadataFetcher(session=http)
            info = await fetcher.fetch(str(server.make_url("/np")))
            await fetcher.close()
            assert http.closed is False
            assert info == NowPlayingInfo(title="Song", artist="Band")

    _run(run())
