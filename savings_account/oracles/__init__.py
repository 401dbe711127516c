"""Price oracle clients."""
from .price_aggregator import (
    HttpPriceAggregator,
    StaticPriceOracle,
    build_price_oracle,
    get_price_for_pair,
    get_token_ticker,
)

__all__ = [
    "HttpPriceAggregator",
    "StaticPriceOracle",
    "build_price_oracle",
    "get_price_for_pair",
    "get_token_ticker",
]
