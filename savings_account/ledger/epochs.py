"""Per-operation "last executed epoch" checkpoints."""
from __future__ import annotations

from ..errors import EpochOrderingError
from ..interfaces.store import StateStore

CLAIM = "rewards_claim"
CONVERT = "convert"
CALCULATE = "rewards_calc"


class EpochGuard:
    """Once-per-epoch gates for claim, convert and reward calculation."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    @staticmethod
    def _key(operation: str) -> str:
        return f"epoch:{operation}"

    def last(self, operation: str) -> int:
        return int(self._store.get(self._key(operation), 0))

    def require_new_epoch(
        self,
        operation: str,
        current_epoch: int,
        error: type[EpochOrderingError],
        message: str,
    ) -> None:
        """Raise ``error`` unless ``operation`` has not run in ``current_epoch``."""
        if current_epoch <= self.last(operation):
            raise error(message)

    def require_ran_in(
        self,
        operation: str,
        current_epoch: int,
        error: type[EpochOrderingError],
        message: str,
    ) -> None:
        """Raise ``error`` unless ``operation`` already ran in ``current_epoch``."""
        if self.last(operation) != current_epoch:
            raise error(message)

    def advance(self, operation: str, epoch: int) -> None:
        self._store.set(self._key(operation), epoch)
