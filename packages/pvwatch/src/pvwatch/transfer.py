"""Monitored file copy through ``pv``.

``copy()`` stats the source and then runs ``pv --numeric --bytes SOURCE >
DEST`` in a shell. pv reports cumulative byte counts on stderr, and these are
turned into progress events. A stall timer reports silence on the stream.
It is re-armed on every new byte count and keeps firing while the silence
lasts. It never stops the copy; call ``abort()`` for that.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import time
from typing import Any, Generator, Union

from pvwatch_run.runner import RunHandle, run
from pvwatch_run.timers import InertTimer, RestartableTimer
from pvwatch_run.types import RunEvents, RunOptions

from pvwatch.progress import ProgressTracker, percent_of
from pvwatch.types import (
    CopyCallbacks,
    CopyOptions,
    CopyStats,
    ProgressData,
    TimeoutData,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def build_copy_command(source: str, destination: str, options: CopyOptions) -> list[str]:
    """Arguments for the copy tool, to be run through a shell."""
    args = [
        "--numeric",  # only output numbers
        "--bytes",  # always output bytes
    ]
    if options.rate_limit:
        args += ["--rate-limit", str(options.rate_limit)]
    args += [shlex.quote(source), ">", shlex.quote(destination)]
    return args


class CopyHandle:
    """A copy in flight: await it for :class:`CopyStats`, ``abort()`` to stop it."""

    def __init__(
        self,
        source: PathLike,
        destination: PathLike,
        options: CopyOptions,
        callbacks: CopyCallbacks,
    ) -> None:
        self.source = os.fspath(source)
        self.destination = os.fspath(destination)
        self._options = options
        self._callbacks = callbacks
        self._start = time.monotonic()
        self._aborted = False
        self._run: RunHandle | None = None
        self._tracker = ProgressTracker(0)
        self._timer: RestartableTimer | InertTimer = InertTimer()
        self._timeouts = 0
        self._task = asyncio.get_running_loop().create_task(self._execute())

    @property
    def aborted(self) -> bool:
        return self._aborted

    def done(self) -> bool:
        return self._task.done()

    def abort(self) -> None:
        """Stop the copy. Safe to call repeatedly or after it finished.

        Before pv has been started this abandons the copy, and awaiting the
        handle raises ``asyncio.CancelledError``. Afterwards pv's process tree
        gets SIGINT, and the copy fails with a ``RunError``.
        """
        self._aborted = True
        if self._run is None:
            self._task.cancel()
        else:
            self._run.kill(signal.SIGINT)

    def _elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)

    def _on_err(self, chunk: str) -> None:
        for value in self._tracker.feed(chunk):
            self._timer.start()
            self._callbacks.emit_progress(
                ProgressData(bytes=value, percent=percent_of(value, self._tracker.total))
            )

    def _on_stall(self) -> None:
        self._timeouts += 1
        logger.debug(
            "No progress copying %s, stall #%d at %d bytes",
            self.source,
            self._timeouts,
            self._tracker.last_bytes,
        )
        self._callbacks.emit_timeout(
            TimeoutData(
                bytes=self._tracker.last_bytes,
                percent=self._tracker.percent,
                time=self._elapsed_ms(),
                count=self._timeouts,
            )
        )

    async def _execute(self) -> CopyStats:
        info = await asyncio.to_thread(os.stat, self.source)
        if self._aborted:
            raise asyncio.CancelledError()

        size = info.st_size
        self._tracker.total = size
        if self._options.timeout and self._callbacks.watches_timeouts:
            self._timer = RestartableTimer(self._on_stall, self._options.timeout, auto_start=True)

        args = build_copy_command(self.source, self.destination, self._options)
        logger.debug("Copying %s (%d bytes) to %s", self.source, size, self.destination)
        try:
            self._run = run(
                shlex.quote(self._options.tool),
                args,
                RunEvents(on_err=self._on_err, on_settle=self._timer.stop),
                RunOptions(shell=True),
            )
            await self._run
        finally:
            self._timer.stop()

        stats = CopyStats(bytes=size, time=self._elapsed_ms())
        logger.debug("Copied %s in %d ms", self.source, stats.time)
        return stats

    def __await__(self) -> Generator[Any, None, CopyStats]:
        return self._task.__await__()


def copy(
    source: PathLike,
    destination: PathLike,
    options: CopyOptions | None = None,
    callbacks: CopyCallbacks | None = None,
) -> CopyHandle:
    """Copy ``source`` to ``destination`` with pv, reporting progress.

    Requires ``pv`` (or ``options.tool``) on PATH and a running event loop.
    Invalid options raise :class:`ConfigurationError` here, before anything
    is started. The resolved stats report the source's size as the byte
    count.
    """
    options = options or CopyOptions()
    options.validate()
    return CopyHandle(source, destination, options, callbacks or CopyCallbacks())
