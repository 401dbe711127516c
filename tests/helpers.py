"""Test doubles, token identifiers and sample data shared by the test modules."""
from __future__ import annotations

import textwrap
from dataclasses import dataclass, field

from savings_account.interfaces.swap_venue import SwapContinuation
from savings_account.models import TokenPayment
from savings_account.services import SavingsAccount

DECIMALS = 10**18
STABLECOIN = "USDC-123456"
LIQUID_STAKING = "LSTK-123456"
STAKED = "WEGLD-123456"
LEND = "LEND-123456"
BORROW = "BORR-123456"
DEX_ADDRESS = "erd1dexpair"

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


@dataclass
class ManualClock:
    """Clock advanced by hand."""

    current_epoch: int = 20
    current_timestamp: int = 1_600_000_000

    def epoch(self) -> int:
        return self.current_epoch

    def timestamp(self) -> int:
        return self.current_timestamp


@dataclass
class FixedOutputVenue:
    """Swap venue paying a fixed stablecoin amount and recording calls."""

    output: int = 10_000
    venue_address: str = DEX_ADDRESS
    confirm: bool = True
    calls: list[tuple[str, int, str, int]] = field(default_factory=list)

    @property
    def address(self) -> str:
        return self.venue_address

    async def swap_fixed_input(
        self,
        token_in: str,
        amount_in: int,
        token_out: str,
        amount_out_min: int,
        continuation: SwapContinuation,
    ) -> None:
        self.calls.append((token_in, amount_in, token_out, amount_out_min))
        if self.confirm:
            await continuation(self.venue_address, TokenPayment(token_out, 0, self.output))


async def borrow_positions(
    account: SavingsAccount, count: int, lent: int = 150_000
) -> list[TokenPayment]:
    """Fund the pool and open ``count`` borrows on instances 1..count."""
    account.lend(TokenPayment(STABLECOIN, 0, lent))
    borrow_tokens = []
    for nonce in range(1, count + 1):
        borrow_token, _ = await account.borrow(
            TokenPayment(LIQUID_STAKING, nonce, 250 * DECIMALS)
        )
        borrow_tokens.append(borrow_token)
    return borrow_tokens


SAMPLE_YAML = textwrap.dedent("""\
    pool:
      state_file: state.json
      epoch_length_seconds: 3600
    rates:
      r_base: 0
      r_slope1: 100000000
      r_slope2: 1000000000
      u_optimal: 800000000
      reserve_factor: 100000000
    borrow:
      ltv: 750000000
      staking_token_decimals: 18
    tokens:
      stablecoin: USDC-123456
      liquid_staking: LSTK-123456
      staked: WEGLD-123456
      lend: LEND-123456
      borrow: BORR-123456
    services:
      delegation:
        provider: rpc
        address: erd1delegation
        rpc_endpoints: ["https://rpc.example.com"]
        rpc_timeout: 10
      swap:
        provider: simulated
        address: erd1dexpair
        min_output: 5
      price_aggregator:
        provider: static
        static_prices: {WEGLD/USDC: 100}
    keeper:
      interval_minutes: 15
""")


