"""Swap venue protocol — fixed-input token swaps."""
from typing import Awaitable, Callable, Protocol

from ..models import TokenPayment

SwapContinuation = Callable[[str, TokenPayment], Awaitable[None]]


class SwapVenue(Protocol):
    """Abstract interface for a DEX that confirms swaps through a continuation.

    The venue delivers the output by awaiting ``continuation(address, payment)``.
    """

    @property
    def address(self) -> str: ...

    async def swap_fixed_input(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out_min: int,
        continuation: SwapContinuation,
    ) -> None: ...
