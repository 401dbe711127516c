"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenPayment:
    """A quantity of one token instance. Fungible tokens use nonce 0."""

    token_id: str
    nonce: int
    amount: int


@dataclass(frozen=True)
class Position:
    """One borrower's pledged collateral, as a node of the position list.

    ``staking_instance_ref`` is the nonce of the liquid staking instance that
    currently holds the collateral; it changes each time rewards are claimed.
    """

    position_id: int
    staking_instance_ref: int
    prev_id: int = 0
    next_id: int = 0


@dataclass(frozen=True)
class RateParameters:
    """Interest curve configuration, all values scaled by BP."""

    r_base: int
    r_slope1: int
    r_slope2: int
    u_optimal: int
    reserve_factor: int


@dataclass(frozen=True)
class RateSnapshot:
    utilisation: int
    borrow_rate: int
    deposit_rate: int


@dataclass(frozen=True)
class PoolState:
    """Pool aggregates plus the epoch checkpoints."""

    lent_amount: int = 0
    borrowed_amount: int = 0
    stablecoin_reserves: int = 0
    unclaimed_rewards: int = 0
    last_rewards_calc_timestamp: int = 0
    last_rewards_claim_epoch: int = 0
    last_convert_epoch: int = 0
    last_rewards_calc_epoch: int = 0


@dataclass(frozen=True)
class LendMetadata:
    lend_epoch: int
    lend_timestamp: int


@dataclass(frozen=True)
class BorrowMetadata:
    borrow_epoch: int
    borrow_timestamp: int
    staked_token_price_at_borrow: int
    staking_position_id: int
    loan_amount: int


@dataclass(frozen=True)
class ClaimRewardsReply:
    """Delegation reply: one fresh instance per instance sent, same order."""

    new_instances: tuple[TokenPayment, ...]
    rewards_amount: int = 0


@dataclass(frozen=True)
class AggregatorResult:
    """Latest round reported by the price aggregator."""

    round_id: int
    from_token_name: str
    to_token_name: str
    price: int
    decimals: int


@dataclass(frozen=True)
class HarvestReport:
    """Outcome of one keeper cycle; None marks a step that did not run."""

    epoch: int
    claimed_positions: int | None = None
    converted_amount: int | None = None
    unclaimed_rewards: int | None = None
