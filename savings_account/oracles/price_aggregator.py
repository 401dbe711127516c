"""Price aggregator oracle clients."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PriceAggregatorConfig
from ..interfaces.price_oracle import PriceOracle
from ..models import AggregatorResult

logger = logging.getLogger(__name__)

TICKER_SEPARATOR = "-"


def get_token_ticker(token_id: str) -> str:
    """Ticker part of a token identifier.

    Examples:
        "EGLD-a1b2c3" → "EGLD"
        "USDC" → "USDC"
    """
    return token_id.split(TICKER_SEPARATOR, 1)[0]


class HttpPriceAggregator:
    """Fetch the latest round for a ticker pair over HTTP."""

    def __init__(self, config: PriceAggregatorConfig) -> None:
        self.url = config.url
        self.address = config.address

    async def latest_price(
        self, from_ticker: str, to_ticker: str
    ) -> AggregatorResult | None:
        params = {"from": from_ticker, "to": to_ticker}
        if self.address:
            params["aggregator"] = self.address

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(self.url, params=params) as response:
                    if response.status == 404:
                        return None
                    if response.status != 200:
                        logger.error(
                            "Error fetching %s/%s from aggregator: HTTP %s",
                            from_ticker, to_ticker, response.status,
                        )
                        return None

                    data = await response.json()
        except Exception as e:
            logger.error("Error fetching price from aggregator: %s", e)
            return None

        if not data:
            return None

        result = AggregatorResult(
            round_id=int(data.get("round_id", 0)),
            from_token_name=str(data.get("from", from_ticker)),
            to_token_name=str(data.get("to", to_ticker)),
            price=int(data.get("price", 0)),
            decimals=int(data.get("decimals", 0)),
        )
        logger.info(
            "Aggregator round %d: %s/%s = %d (decimals %d)",
            result.round_id, from_ticker, to_ticker, result.price, result.decimals,
        )
        return result


class StaticPriceOracle:
    """Fixed prices keyed ``"FROM/TO"`` by ticker."""

    def __init__(self, prices: dict[str, int], decimals: int = 0) -> None:
        self.prices = dict(prices)
        self.decimals = decimals

    async def latest_price(
        self, from_ticker: str, to_ticker: str
    ) -> AggregatorResult | None:
        price = self.prices.get(f"{from_ticker}/{to_ticker}")
        if price is None:
            return None
        return AggregatorResult(
            round_id=1,
            from_token_name=from_ticker,
            to_token_name=to_ticker,
            price=price,
            decimals=self.decimals,
        )


def build_price_oracle(config: PriceAggregatorConfig) -> PriceOracle | None:
    """Oracle for the configured provider, or None when none is set up."""
    if config.provider == "static":
        return StaticPriceOracle(config.static_prices, config.static_decimals)
    if config.provider == "http" and config.url:
        return HttpPriceAggregator(config)
    return None


async def get_price_for_pair(
    oracle: PriceOracle | None, from_token: str, to_token: str
) -> int | None:
    """Latest price of ``from_token`` in ``to_token``, by ticker."""
    if oracle is None:
        return None
    result = await oracle.latest_price(
        get_token_ticker(from_token), get_token_ticker(to_token)
    )
    return result.price if result is not None else None
