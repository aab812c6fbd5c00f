"""Keyed timers on top of the running asyncio event loop."""

import asyncio
from collections.abc import Callable

from loguru import logger


class AsyncioScheduler:
    """Single-threaded keyed timers.

    Every job runs on the event loop thread, so a job never interleaves with
    another job or with code awaiting between suspension points.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _run(self, key: str, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:
            logger.exception("Scheduled job {!r} failed", key)

    def schedule_once(self, key: str, delay: float, fn: Callable[[], None]) -> None:
        self.cancel(key)

        def fire() -> None:
            self._handles.pop(key, None)
            self._run(key, fn)

        self._handles[key] = self._get_loop().call_later(delay, fire)

    def schedule_repeating(self, key: str, interval: float, fn: Callable[[], None]) -> None:
        self.cancel(key)
        loop = self._get_loop()

        def tick() -> None:
            # Re-arm before running fn, the series survives a failing job.
            self._handles[key] = loop.call_later(interval, tick)
            self._run(key, fn)

        self._handles[key] = loop.call_later(interval, tick)

    def cancel(self, key: str) -> None:
        handle = self._handles.pop(key, None)
        if handle is not None:
            handle.cancel()

    def is_scheduled(self, key: str) -> bool:
        return key in self._handles

    def cancel_all(self) -> None:
        for key in list(self._handles):
            self.cancel(key)
