"""Staking reward harvesting — claim from delegation, convert via the swap venue.

Both steps issue one outbound call and apply their state changes only in the
continuation that handles the reply. While a step awaits its reply the pool
is locked: a second harvest step and every pool operation that changes
positions or totals raise HarvestInProgress.
"""
from __future__ import annotations

import logging

from ..errors import (
    AlreadyClaimedThisEpoch,
    AlreadyConvertedThisEpoch,
    ClaimReplyMismatch,
    InvalidToken,
    MustClaimFirst,
    NoPositionsAvailable,
    RemoteCallError,
    SavingsAccountError,
    UnauthorizedCaller,
)
from ..interfaces.delegation import DelegationService
from ..interfaces.swap_venue import SwapVenue
from ..ledger import CLAIM, CONVERT
from ..models import ClaimRewardsReply, TokenPayment
from .pool import SavingsAccount

logger = logging.getLogger(__name__)


class HarvestWorkflow:
    """Claim staking rewards for every position, then swap them to stablecoins."""

    def __init__(
        self,
        account: SavingsAccount,
        delegation: DelegationService,
        swap_venue: SwapVenue,
        min_output: int = 0,
    ) -> None:
        self._account = account
        self._delegation = delegation
        self._swap = swap_venue
        self.min_output = min_output

        self._pending_swap_amount = 0
        self._swap_confirmation: TokenPayment | None = None

    @property
    def claim_in_flight(self) -> bool:
        return self._account.harvest_in_flight == CLAIM

    @property
    def convert_in_flight(self) -> bool:
        return self._account.harvest_in_flight == CONVERT

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    async def claim(self) -> int:
        """Send every staking instance to the delegation service.

        Returns the number of positions re-pointed to fresh instances.
        """
        account = self._account
        account.require_idle()

        current_epoch = account.clock.epoch()
        account.epochs.require_new_epoch(
            CLAIM, current_epoch, AlreadyClaimedThisEpoch, "Already claimed this epoch"
        )

        positions = list(account.positions.traverse())
        if not positions:
            raise NoPositionsAvailable("No staking positions available")

        token_id = account.token_ids.liquid_staking
        transfers = [
            TokenPayment(
                token_id,
                p.staking_instance_ref,
                account.tokens.balance(token_id, p.staking_instance_ref),
            )
            for p in positions
        ]
        position_ids = [p.position_id for p in positions]

        logger.info(
            "Claiming staking rewards for %d positions (epoch %d)",
            len(position_ids), current_epoch,
        )

        account.begin_harvest(CLAIM)
        try:
            try:
                reply = await self._delegation.claim_rewards(transfers)
            except Exception as e:
                logger.error("claimRewards call failed: %s", e)
                raise RemoteCallError(f"claimRewards call failed: {e}") from e

            self.claim_callback(position_ids, transfers, reply)
        finally:
            account.end_harvest()

        return len(position_ids)

    def claim_callback(
        self,
        position_ids: list[int],
        transfers: list[TokenPayment],
        reply: ClaimRewardsReply,
    ) -> None:
        """Apply a successful delegation reply.

        ``position_ids`` and ``transfers`` are the correlation data sent with
        the call, in traversal order; the reply must match them one for one.
        """
        account = self._account
        token_id = account.token_ids.liquid_staking

        if len(reply.new_instances) != len(position_ids):
            raise ClaimReplyMismatch(
                f"Delegation returned {len(reply.new_instances)} instances "
                f"for {len(position_ids)} positions"
            )
        for instance in reply.new_instances:
            if instance.token_id != token_id:
                raise ClaimReplyMismatch(
                    f"Delegation returned unexpected token {instance.token_id}"
                )

        with account.store.transaction():
            for transfer in transfers:
                account.tokens.debit(transfer)
            for instance in reply.new_instances:
                account.tokens.credit(instance)
            if reply.rewards_amount:
                account.tokens.credit(
                    TokenPayment(account.token_ids.staked, 0, reply.rewards_amount)
                )

            account.positions.reassign(
                [
                    (position_id, instance.nonce)
                    for position_id, instance in zip(position_ids, reply.new_instances)
                ]
            )
            account.epochs.advance(CLAIM, account.clock.epoch())

        logger.info(
            "Claimed %d in staking rewards, %d positions re-pointed",
            reply.rewards_amount, len(position_ids),
        )

    # ------------------------------------------------------------------
    # Convert
    # ------------------------------------------------------------------

    async def convert(self) -> int:
        """Swap the pool's whole staked-asset balance to stablecoins.

        Returns the stablecoin amount added to the reserves.
        """
        account = self._account
        account.require_idle()

        current_epoch = account.clock.epoch()
        account.epochs.require_ran_in(
            CLAIM, current_epoch, MustClaimFirst,
            "Must claim rewards for this epoch first",
        )
        account.epochs.require_new_epoch(
            CONVERT, current_epoch, AlreadyConvertedThisEpoch,
            "Already converted to stablecoins this epoch",
        )

        staked_token = account.token_ids.staked
        balance = account.tokens.balance(staked_token)
        if balance == 0:
            with account.store.transaction():
                account.epochs.advance(CONVERT, current_epoch)
            logger.info("Nothing to convert in epoch %d", current_epoch)
            return 0

        logger.info(
            "Converting %d %s to %s (min output %d)",
            balance, staked_token, account.token_ids.stablecoin, self.min_output,
        )

        account.begin_harvest(CONVERT)
        self._pending_swap_amount = balance
        self._swap_confirmation = None
        try:
            try:
                await self._swap.swap_fixed_input(
                    staked_token,
                    balance,
                    account.token_ids.stablecoin,
                    self.min_output,
                    self.convert_callback,
                )
            except SavingsAccountError:
                raise
            except Exception as e:
                if self._swap_confirmation is None:
                    logger.error("Swap call failed: %s", e)
                    raise RemoteCallError(f"Swap call failed: {e}") from e
                logger.warning("Swap venue raised after confirming: %s", e)

            confirmation = self._swap_confirmation
            if confirmation is None:
                raise RemoteCallError("Swap venue returned without confirming")
        finally:
            account.end_harvest()
            self._pending_swap_amount = 0
            self._swap_confirmation = None

        return confirmation.amount

    async def convert_callback(self, caller: str, payment: TokenPayment) -> None:
        """Swap confirmation entry point; only the swap venue may call it."""
        account = self._account
        if caller != self._swap.address:
            logger.warning("Rejected swap confirmation from %s", caller)
            raise UnauthorizedCaller("Only the swap venue may call this function")
        if payment.token_id != account.token_ids.stablecoin or payment.nonce != 0:
            raise InvalidToken(f"Swap paid out {payment.token_id}, not the stablecoin")

        with account.store.transaction():
            if self._pending_swap_amount:
                account.tokens.debit(
                    TokenPayment(account.token_ids.staked, 0, self._pending_swap_amount)
                )
            account.tokens.credit(payment)
            account.aggregates.adjust("stablecoin_reserves", payment.amount)
            account.epochs.advance(CONVERT, account.clock.epoch())

        self._pending_swap_amount = 0
        self._swap_confirmation = payment
        logger.info("Stablecoin reserves increased by %d", payment.amount)
