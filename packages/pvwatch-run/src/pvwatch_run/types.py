"""Core types for process runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class RunState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SETTLED = "settled"


@dataclass(frozen=True)
class RunResult:
    stdout: str = ""
    stderr: str = ""
    code: int | None = 0


@dataclass
class RunOptions:
    """Spawn configuration.

    With ``shell=True`` the command and its arguments are joined with single
    spaces and handed to the system shell, so redirection tokens take effect.
    Arguments are not quoted; callers quote what needs quoting.
    """

    cwd: str | None = None
    env: dict[str, str] | None = None
    shell: bool = False


@dataclass
class RunEvents:
    """Observers for output chunks and settlement. Unset observers are inert.

    ``on_settle`` runs once, the moment the run's outcome is fixed and
    before anyone awaiting the handle resumes.
    """

    on_out: Callable[[str], None] | None = None
    on_err: Callable[[str], None] | None = None
    on_settle: Callable[[], None] | None = None

    def emit_out(self, chunk: str) -> None:
        if self.on_out is not None:
            self.on_out(chunk)

    def emit_err(self, chunk: str) -> None:
        if self.on_err is not None:
            self.on_err(chunk)

    def emit_settle(self) -> None:
        if self.on_settle is not None:
            self.on_settle()
