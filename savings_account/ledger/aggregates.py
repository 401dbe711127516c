"""Pool-wide scalar aggregates."""
from __future__ import annotations

from ..interfaces.store import StateStore

AGGREGATE_FIELDS = (
    "lent_amount",
    "borrowed_amount",
    "stablecoin_reserves",
    "unclaimed_rewards",
    "last_rewards_calc_timestamp",
)
_KEY = "pool"


class AggregateLedger:
    """Non-negative integer totals kept under a single store key."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def snapshot(self) -> dict[str, int]:
        raw = self._store.get(_KEY) or {}
        return {name: int(raw.get(name, 0)) for name in AGGREGATE_FIELDS}

    def get(self, name: str) -> int:
        return self.snapshot()[name]

    def set(self, name: str, value: int) -> None:
        if name not in AGGREGATE_FIELDS:
            raise KeyError(name)
        if value < 0:
            raise ValueError(f"Aggregate '{name}' cannot go negative ({value})")
        values = self.snapshot()
        values[name] = value
        self._store.set(_KEY, values)

    def adjust(self, name: str, delta: int) -> int:
        value = self.get(name) + delta
        self.set(name, value)
        return value
