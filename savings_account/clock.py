"""Wall-clock epoch source."""
from __future__ import annotations

import time


class SystemClock:
    """Derive epochs from wall-clock time in fixed-length windows."""

    def __init__(self, epoch_length_seconds: int, genesis_timestamp: int = 0) -> None:
        if epoch_length_seconds <= 0:
            raise ValueError("epoch_length_seconds must be positive")
        self.epoch_length_seconds = epoch_length_seconds
        self.genesis_timestamp = genesis_timestamp

    def timestamp(self) -> int:
        return int(time.time())

    def epoch(self) -> int:
        return max(0, self.timestamp() - self.genesis_timestamp) // self.epoch_length_seconds
