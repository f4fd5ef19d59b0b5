"""Run external programs with streamed output and tree-kill cancellation."""

from pvwatch_run.types import RunEvents, RunOptions, RunResult, RunState
from pvwatch_run.errors import (
    ProcessError,
    RunError,
    RunStartError,
    ConfigurationError,
)
from pvwatch_run.runner import RunHandle, run
from pvwatch_run.timers import InertTimer, RestartableTimer
