"""Parser for pv's numeric progress stream."""

from __future__ import annotations


def percent_of(done: int, total: int) -> float:
    if total <= 0:
        return 100.0
    return done / total * 100


class ProgressTracker:
    """Tracks the cumulative byte counts pv writes to stderr.

    With ``--numeric --bytes`` pv prints one integer per line. Lines that are
    not integers are ignored, and so is a value equal to the last one seen.
    """

    def __init__(self, total: int) -> None:
        self.total = total
        self.last_bytes = 0

    @property
    def percent(self) -> float:
        return percent_of(self.last_bytes, self.total)

    def feed(self, chunk: str) -> list[int]:
        """Consume one stderr chunk, returning the new byte counts in order."""
        changes: list[int] = []
        for line in chunk.splitlines():
            try:
                value = int(line.strip())
            except ValueError:
                continue
            if value == self.last_bytes:
                continue
            self.last_bytes = value
            changes.append(value)
        return changes
