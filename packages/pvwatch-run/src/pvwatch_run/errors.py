"""Error hierarchy for process runs."""

from __future__ import annotations

import signal as _signal

from pvwatch_run.types import RunResult


class ProcessError(Exception):
    """Base error for all library errors."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class RunStartError(ProcessError):
    """The program could not be started at all."""


class RunError(ProcessError):
    """The program ran and exited with a non-zero code or by a signal."""

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.stdout = stdout
        self.stderr = stderr
        self.code = code

    @property
    def signal(self) -> _signal.Signals | None:
        """Signal that terminated the program, if any."""
        if self.code is None or self.code >= 0:
            return None
        try:
            return _signal.Signals(-self.code)
        except ValueError:
            return None

    @property
    def result(self) -> RunResult:
        return RunResult(stdout=self.stdout, stderr=self.stderr, code=self.code)


class ConfigurationError(ProcessError, ValueError):
    """Invalid options, raised before any work starts."""
