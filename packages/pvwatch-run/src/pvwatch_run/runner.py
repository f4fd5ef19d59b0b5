"""Run an external program, streaming its output as it arrives."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
from typing import Any, Callable, Generator, Sequence

from pvwatch_run.errors import RunError, RunStartError
from pvwatch_run.types import RunEvents, RunOptions, RunResult, RunState

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024  # max bytes per read, and per callback


def _signal_group(pid: int, sig: int) -> None:
    """Signal the process group led by ``pid``: the child and all descendants."""
    try:
        os.killpg(os.getpgid(pid), sig)
    except (ProcessLookupError, OSError) as exc:
        logger.debug("Signal %s to group of pid %d not delivered: %s", sig, pid, exc)


async def _spawn(
    command: str, args: Sequence[str], options: RunOptions
) -> asyncio.subprocess.Process:
    kwargs: dict[str, Any] = {
        "stdin": asyncio.subprocess.DEVNULL,
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
        "cwd": options.cwd,
        "env": options.env,
        # own process group, so kill() reaches grandchildren too
        "start_new_session": True,
    }
    if options.shell:
        return await asyncio.create_subprocess_shell(" ".join([command, *args]), **kwargs)
    return await asyncio.create_subprocess_exec(command, *args, **kwargs)


async def _pump(stream: asyncio.StreamReader, emit: Callable[[str], None]) -> str:
    """Forward every chunk of ``stream`` to ``emit`` and return the whole text."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    parts: list[str] = []
    while True:
        data = await stream.read(CHUNK_SIZE)
        text = decoder.decode(data, final=not data)
        if text:
            emit(text)
            parts.append(text)
        if not data:
            return "".join(parts)


class RunHandle:
    """A started program: await it for the outcome, call ``kill()`` to stop it.

    Awaiting yields a :class:`RunResult` when the program exits with code 0
    and raises :class:`RunError` for any other exit, including death by
    signal. A program that cannot be started raises :class:`RunStartError`.
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        events: RunEvents | None = None,
        options: RunOptions | None = None,
    ) -> None:
        self.command = command
        self.args = list(args)
        self._events = events or RunEvents()
        self._options = options or RunOptions()
        self._state = RunState.PENDING
        self._proc: asyncio.subprocess.Process | None = None
        self._queued: list[int] = []
        self._delivered: set[int] = set()
        self._task = asyncio.get_running_loop().create_task(self._execute())

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    def done(self) -> bool:
        return self._task.done()

    def kill(self, sig: int = signal.SIGTERM) -> None:
        """Signal the program and its whole process tree. Never raises.

        A no-op once the run has settled. Before the spawn completes the
        signal is queued and sent as soon as there is a pid. Each signal is
        sent at most once per run.
        """
        if self._state is RunState.SETTLED:
            return
        if self._proc is None:
            if sig not in self._queued:
                self._queued.append(sig)
            return
        self._deliver(sig)

    def _deliver(self, sig: int) -> None:
        if sig in self._delivered or self._proc is None:
            return
        self._delivered.add(sig)
        logger.debug("Sending signal %s to %s (pid %d)", sig, self.command, self._proc.pid)
        _signal_group(self._proc.pid, sig)

    def _settle(self) -> None:
        if self._state is RunState.SETTLED:
            return
        self._state = RunState.SETTLED
        self._events.emit_settle()

    async def _execute(self) -> RunResult:
        try:
            proc = await _spawn(self.command, self.args, self._options)
        except OSError as exc:
            self._settle()
            logger.warning("Can't start %s: %s", self.command, exc)
            raise RunStartError("Can't start program", cause=exc) from exc
        except BaseException:
            self._settle()
            raise

        self._proc = proc
        self._state = RunState.RUNNING
        logger.debug("Started %s %s (pid %d)", self.command, self.args, proc.pid)
        for sig in self._queued:
            self._deliver(sig)
        self._queued.clear()

        try:
            stdout, stderr = await asyncio.gather(
                _pump(proc.stdout, self._events.emit_out),
                _pump(proc.stderr, self._events.emit_err),
            )
            code = await proc.wait()
        except BaseException:
            # cancelled, or an output observer raised
            self._deliver(signal.SIGKILL)
            self._settle()
            try:
                await asyncio.shield(proc.wait())
            except asyncio.CancelledError:
                logger.debug("Stopped waiting for killed %s (pid %d)", self.command, proc.pid)
            raise

        self._settle()
        logger.debug("%s (pid %d) exited with code %s", self.command, proc.pid, code)
        if code:
            raise RunError(
                f"Program exited with code {code}",
                stdout=stdout,
                stderr=stderr,
                code=code,
            )
        return RunResult(stdout=stdout, stderr=stderr, code=code)

    def __await__(self) -> Generator[Any, None, RunResult]:
        return self._task.__await__()


def run(
    command: str,
    args: Sequence[str] = (),
    events: RunEvents | None = None,
    options: RunOptions | None = None,
) -> RunHandle:
    """Start ``command`` right away and return a handle to await or kill.

    Must be called from a running event loop.
    """
    return RunHandle(command, args, events, options)
