"""Recurring now-playing refresh loop with cooperative cancellation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 30.0


class MetadataPoller:
    """Runs `fetch` every `interval_s` seconds until stopped.

    Each loop instance owns a generation token. `stop()` and `start()`
    invalidate the previous token, and the loop re-checks its token before
    sleeping and after waking, so a stop requested mid-sleep suppresses the
    pending fetch even if task cancellation has not been delivered yet.
    """

    def __init__(self, *, interval_s: float = DEFAULT_POLL_INTERVAL_S) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._interval_s = float(interval_s)
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_current(self, token: int) -> bool:
        return token == self._generation and self.is_running

    def start(self, fetch: Callable[[], Awaitable[None]]) -> int:
        """Replace any active loop with a new one and return its token."""
        self.stop()
        self._generation += 1
        token = self._generation
        self._task = asyncio.create_task(self._run(token, fetch))
        logger.debug(
            "Metadata poller %d started (every %.1fs)", token, self._interval_s
        )
        return token

    def stop(self) -> None:
        task = self._task
        self._task = None
        self._generation += 1
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Metadata poller stopped")

    async def aclose(self) -> None:
        """Stop the loop and wait for its task to unwind."""
        task = self._task
        self.stop()
        if task is not None:
            with suppress(asyncio.CancelledError):
                await task

    async def _run(self, token: int, fetch: Callable[[], Awaitable[None]]) -> None:
        try:
            while token == self._generation:
                await asyncio.sleep(self._interval_s)
                if token != self._generation:
                    return
                try:
                    await fetch()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Metadata poll %d failed", token)
        except asyncio.CancelledError:
            return
