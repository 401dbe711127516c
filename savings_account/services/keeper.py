"""Periodic harvesting — claim → convert → calculate, once per epoch."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..errors import EpochOrderingError, NoPositionsAvailable
from ..fixed_point import BP
from ..ledger import CALCULATE, CLAIM, CONVERT
from ..models import HarvestReport
from .harvest import HarvestWorkflow
from .pool import SavingsAccount

logger = logging.getLogger(__name__)


class HarvestKeeper:
    """Drives the epoch-scoped operations of a pool and reports on it."""

    def __init__(
        self,
        account: SavingsAccount,
        harvest: HarvestWorkflow,
        interval_minutes: int = 60,
    ) -> None:
        self.account = account
        self.harvest = harvest
        self.interval_minutes = interval_minutes

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_bp(value: int) -> str:
        """Render a BP-scaled value as a percentage."""
        return f"{value * 100 / BP:.4f}%"

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def status_report(self) -> str:
        state = self.account.summary()
        rates = self.account.current_rates()
        return (
            f"Savings account pool · epoch {self.account.clock.epoch()}\n"
            f"\n"
            f"Lent: {state.lent_amount:,}\n"
            f"Borrowed: {state.borrowed_amount:,}\n"
            f"Stablecoin reserves: {state.stablecoin_reserves:,}\n"
            f"Unclaimed lender rewards: {state.unclaimed_rewards:,}\n"
            f"\n"
            f"Utilisation: {self._format_bp(rates.utilisation)}\n"
            f"Borrow rate: {self._format_bp(rates.borrow_rate)}\n"
            f"Deposit rate: {self._format_bp(rates.deposit_rate)}\n"
            f"\n"
            f"Last claim epoch: {state.last_rewards_claim_epoch}\n"
            f"Last convert epoch: {state.last_convert_epoch}\n"
            f"Last rewards calc epoch: {state.last_rewards_calc_epoch}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def positions_report(self) -> str:
        ledger = self.account.positions
        token_id = self.account.token_ids.liquid_staking
        lines = [
            f"#{p.position_id}  instance {p.staking_instance_ref}  "
            f"held {self.account.tokens.balance(token_id, p.staking_instance_ref):,}  "
            f"prev {p.prev_id}  next {p.next_id}"
            for p in ledger.traverse()
        ]
        body = "\n".join(lines) if lines else "No staking positions."
        return f"Staking positions (last id {ledger.last_valid_id})\n\n{body}"

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def run_once(self) -> HarvestReport:
        """Run whichever epoch steps are still due in the current epoch."""
        epochs = self.account.epochs
        epoch = self.account.clock.epoch()
        claimed = converted = unclaimed = None

        try:
            if epochs.last(CLAIM) < epoch:
                claimed = await self.harvest.claim()
            if epochs.last(CLAIM) == epoch and epochs.last(CONVERT) < epoch:
                converted = await self.harvest.convert()
            if epochs.last(CONVERT) == epoch and epochs.last(CALCULATE) < epoch:
                unclaimed = self.account.calculate_total_lender_rewards()
        except (EpochOrderingError, NoPositionsAvailable) as e:
            logger.info("Harvest step skipped in epoch %d: %s", epoch, e)

        report = HarvestReport(
            epoch=epoch,
            claimed_positions=claimed,
            converted_amount=converted,
            unclaimed_rewards=unclaimed,
        )
        logger.info(
            "Harvest epoch %d — claimed: %s  converted: %s  unclaimed rewards: %s",
            epoch, claimed, converted, unclaimed,
        )
        return report

    async def run_continuous(self, interval_minutes: int | None = None) -> None:
        """Run the harvest loop forever."""
        interval = interval_minutes or self.interval_minutes
        logger.info("Starting harvest keeper (checking every %d minutes)", interval)

        while True:
            try:
                await self.run_once()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in harvest loop: %s", e)
                await asyncio.sleep(60)
