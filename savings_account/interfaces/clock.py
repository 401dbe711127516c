"""Clock protocol — block epoch and timestamp source."""
from typing import Protocol


class Clock(Protocol):
    """Abstract interface for the externally advancing time units."""

    def epoch(self) -> int: ...

    def timestamp(self) -> int: ...
