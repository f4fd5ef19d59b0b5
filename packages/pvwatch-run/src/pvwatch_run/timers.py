"""Restart-on-activity timers driven by the running event loop."""

from __future__ import annotations

import asyncio
from typing import Callable


class RestartableTimer:
    """Calls ``callback`` after ``delay_ms`` of no ``start()`` calls.

    ``start()`` (re)arms from now and ``stop()`` disarms. After firing the
    timer re-arms itself, so a silence that keeps going fires again every
    ``delay_ms``.
    """

    def __init__(
        self, callback: Callable[[], None], delay_ms: float, auto_start: bool = False
    ) -> None:
        self._callback = callback
        self._delay_ms = delay_ms
        self._handle: asyncio.TimerHandle | None = None
        if auto_start:
            self.start()

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay_ms / 1000.0, self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        # re-arm first; the callback may stop() us
        self.start()
        self._callback()


class InertTimer:
    """Same interface as RestartableTimer, never fires."""

    delay_ms = 0.0
    active = False

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass
