"""Wire a pool, its remote services and the keeper from configuration."""
from __future__ import annotations

import logging

from ..clock import SystemClock
from ..config import AppConfig
from ..interfaces.clock import Clock
from ..interfaces.store import StateStore
from ..oracles import build_price_oracle
from ..remotes import build_delegation_service, build_swap_venue
from ..storage import JsonFileStore
from .harvest import HarvestWorkflow
from .keeper import HarvestKeeper
from .pool import SavingsAccount

logger = logging.getLogger(__name__)


def build_keeper(
    config: AppConfig,
    store: StateStore | None = None,
    clock: Clock | None = None,
) -> HarvestKeeper:
    """Build the full object graph; defaults to the configured state file and wall clock."""
    if store is None:
        store = JsonFileStore(config.pool.state_file)
    if clock is None:
        clock = SystemClock(
            config.pool.epoch_length_seconds, config.pool.genesis_timestamp
        )

    oracle = build_price_oracle(config.services.price_aggregator)
    if oracle is None:
        logger.warning("No price aggregator configured; borrowing is disabled")

    account = SavingsAccount(config, store, clock, oracle)
    harvest = HarvestWorkflow(
        account,
        build_delegation_service(config.services.delegation, config.tokens),
        build_swap_venue(config.services.swap),
        min_output=config.services.swap.min_output,
    )
    return HarvestKeeper(account, harvest, config.keeper.interval_minutes)
