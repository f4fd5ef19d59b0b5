"""Monitored file copies with progress and stall reporting."""

from pvwatch_run.errors import (
    ProcessError,
    RunError,
    RunStartError,
    ConfigurationError,
)
from pvwatch.types import (
    MIN_TIMEOUT,
    CopyCallbacks,
    CopyOptions,
    CopyStats,
    ProgressData,
    TimeoutData,
)
from pvwatch.progress import ProgressTracker, percent_of
from pvwatch.transfer import CopyHandle, build_copy_command, copy
