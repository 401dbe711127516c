"""Swap venue clients."""
from __future__ import annotations

import logging

from ..fixed_point import BP
from ..interfaces.swap_venue import SwapContinuation
from ..models import TokenPayment
from .rpc import JsonRpcClient

logger = logging.getLogger(__name__)

SWAP_FIXED_INPUT_METHOD = "swapTokensFixedInput"


class RpcSwapVenue:
    """DEX pair reached over JSON-RPC; confirms through the continuation."""

    def __init__(self, client: JsonRpcClient, address: str) -> None:
        self._client = client
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    async def swap_fixed_input(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out_min: int,
        continuation: SwapContinuation,
    ) -> None:
        result = await self._client.rpc_call(
            SWAP_FIXED_INPUT_METHOD,
            [
                self._address,
                {
                    "token_in": token_in,
                    "amount_in": str(amount_in),
                    "token_out": token_out,
                    "amount_out_min": str(amount_out_min),
                },
            ],
        )
        amount_out = int(result.get("amount_out", 0))
        if amount_out < amount_out_min:
            raise RuntimeError(
                f"Swap returned {amount_out}, below minimum {amount_out_min}"
            )
        logger.info("Swapped %d %s for %d %s", amount_in, token_in, amount_out, token_out)
        await continuation(self._address, TokenPayment(token_out, 0, amount_out))


class SimulatedSwapVenue:
    """In-process venue swapping at a fixed rate (scaled by BP)."""

    def __init__(self, address: str, rate: int = BP) -> None:
        self._address = address
        self.rate = rate

    @property
    def address(self) -> str:
        return self._address

    async def swap_fixed_input(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out_min: int,
        continuation: SwapContinuation,
    ) -> None:
        amount_out = amount_in * self.rate // BP
        if amount_out < amount_out_min:
            raise RuntimeError(
                f"Swap returned {amount_out}, below minimum {amount_out_min}"
            )
        await continuation(self._address, TokenPayment(token_out, 0, amount_out))
