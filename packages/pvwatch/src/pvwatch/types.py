"""Options, observers and event payloads for monitored copies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pvwatch_run.errors import ConfigurationError

MIN_TIMEOUT = 3000  # ms


@dataclass
class CopyOptions:
    """Settings for one copy.

    ``rate_limit`` is in bytes per second; 0 or None copies unthrottled.
    ``timeout`` is the stall notice delay in milliseconds. It only reports
    stale progress, it never stops the copy.
    """

    rate_limit: int | None = None
    timeout: int | None = None
    tool: str = "pv"

    def validate(self) -> None:
        if self.timeout is not None and self.timeout < MIN_TIMEOUT:
            raise ConfigurationError(f"Timeout must be >= {MIN_TIMEOUT}")
        if self.rate_limit is not None and self.rate_limit < 0:
            raise ConfigurationError("Rate limit must be >= 0")
        if not self.tool:
            raise ConfigurationError("Copy tool must not be empty")


@dataclass(frozen=True)
class ProgressData:
    bytes: int
    percent: float


@dataclass(frozen=True)
class TimeoutData:
    bytes: int
    percent: float
    time: int
    count: int


@dataclass(frozen=True)
class CopyStats:
    bytes: int
    time: int


@dataclass
class CopyCallbacks:
    """Observers for a copy. Unset observers are inert."""

    on_progress: Callable[[ProgressData], None] | None = None
    on_timeout: Callable[[TimeoutData], None] | None = None

    @property
    def watches_timeouts(self) -> bool:
        return self.on_timeout is not None

    def emit_progress(self, data: ProgressData) -> None:
        if self.on_progress is not None:
            self.on_progress(data)

    def emit_timeout(self, data: TimeoutData) -> None:
        if self.on_timeout is not None:
            self.on_timeout(data)
