"""Shared test fixtures."""
from __future__ import annotations

from pathlib import Path

import pytest

from savings_account.config import (
    AppConfig,
    BorrowConfig,
    DelegationConfig,
    PoolConfig,
    PriceAggregatorConfig,
    RatesConfig,
    ServicesConfig,
    SwapConfig,
    TokensConfig,
)
from savings_account.oracles import StaticPriceOracle
from savings_account.remotes import SimulatedDelegationService
from savings_account.services import HarvestWorkflow, SavingsAccount
from savings_account.storage import MemoryStore

from helpers import (
    BORROW,
    DEX_ADDRESS,
    LEND,
    LIQUID_STAKING,
    SAMPLE_YAML,
    STABLECOIN,
    STAKED,
    FixedOutputVenue,
    ManualClock,
)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_tokens() -> TokensConfig:
    return TokensConfig(
        stablecoin=STABLECOIN,
        liquid_staking=LIQUID_STAKING,
        staked=STAKED,
        lend=LEND,
        borrow=BORROW,
    )


@pytest.fixture()
def sample_rates() -> RatesConfig:
    return RatesConfig(
        r_base=0,
        r_slope1=100_000_000,
        r_slope2=1_000_000_000,
        u_optimal=800_000_000,
        reserve_factor=100_000_000,
    )


@pytest.fixture()
def sample_app_config(
    sample_tokens: TokensConfig, sample_rates: RatesConfig, tmp_path: Path
) -> AppConfig:
    return AppConfig(
        pool=PoolConfig(state_file=str(tmp_path / "state.json")),
        rates=sample_rates,
        borrow=BorrowConfig(ltv=750_000_000, staking_token_decimals=18),
        tokens=sample_tokens,
        services=ServicesConfig(
            delegation=DelegationConfig(provider="simulated"),
            swap=SwapConfig(provider="simulated", address=DEX_ADDRESS),
            price_aggregator=PriceAggregatorConfig(
                provider="static", static_prices={"WEGLD/USDC": 100}
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Pool fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def account(
    sample_app_config: AppConfig, store: MemoryStore, clock: ManualClock
) -> SavingsAccount:
    return SavingsAccount(
        sample_app_config, store, clock, StaticPriceOracle({"WEGLD/USDC": 100})
    )


@pytest.fixture()
def venue() -> FixedOutputVenue:
    return FixedOutputVenue()


@pytest.fixture()
def harvest(account: SavingsAccount, venue: FixedOutputVenue) -> HarvestWorkflow:
    return HarvestWorkflow(account, SimulatedDelegationService(LIQUID_STAKING), venue)


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
