"""Price oracle protocol — price feed abstraction."""
from typing import Protocol

from ..models import AggregatorResult


class PriceOracle(Protocol):
    """Abstract interface for fetching the latest price of a ticker pair."""

    async def latest_price(
        self, from_ticker: str, to_ticker: str
    ) -> AggregatorResult | None: ...
