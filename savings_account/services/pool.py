"""Lending pool operations — lend, withdraw, borrow, repay and lender rewards."""
from __future__ import annotations

import logging
from dataclasses import asdict

from .. import fixed_point
from ..config import AppConfig
from ..errors import (
    AlreadyCalculatedThisEpoch,
    HarvestInProgress,
    InsufficientLiquidity,
    InsufficientRepayment,
    InsufficientReserves,
    InvalidAmount,
    InvalidToken,
    MustConvertFirst,
    NoRewardsToClaim,
    PriceUnavailable,
)
from ..interfaces.clock import Clock
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.store import StateStore
from ..ledger import (
    CALCULATE,
    CLAIM,
    CONVERT,
    AggregateLedger,
    EpochGuard,
    PositionLedger,
    TokenLedger,
)
from ..models import (
    BorrowMetadata,
    LendMetadata,
    PoolState,
    RateParameters,
    RateSnapshot,
    TokenPayment,
)
from ..oracles import get_price_for_pair

logger = logging.getLogger(__name__)

_RATES_KEY = "rates"


class SavingsAccount:
    """Stablecoin lending pool backed by liquid staking collateral."""

    def __init__(
        self,
        config: AppConfig,
        store: StateStore,
        clock: Clock,
        oracle: PriceOracle | None = None,
    ) -> None:
        self.config = config
        self.token_ids = config.tokens
        self.store = store
        self.clock = clock
        self._oracle = oracle
        self._harvest_in_flight: str | None = None

        self.tokens = TokenLedger(store)
        self.positions = PositionLedger(store)
        self.epochs = EpochGuard(store)
        self.aggregates = AggregateLedger(store)

        self._init_rates(config.rates.as_parameters())

    def _init_rates(self, configured: RateParameters) -> None:
        stored = self.store.get(_RATES_KEY)
        if stored is None:
            with self.store.transaction():
                self.store.set(_RATES_KEY, asdict(configured))
            return
        if RateParameters(**stored) != configured:
            logger.warning(
                "Configured rate parameters differ from the pool's; keeping stored %s",
                stored,
            )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def rates(self) -> RateParameters:
        return RateParameters(**self.store.get(_RATES_KEY))

    def current_rates(self) -> RateSnapshot:
        """Utilisation, borrow and deposit rate at the pool's current totals."""
        params = self.rates
        lent = self.aggregates.get("lent_amount")
        borrowed = self.aggregates.get("borrowed_amount")

        utilisation = fixed_point.capital_utilisation(borrowed, lent) if lent else 0
        borrow_rate = fixed_point.borrow_rate(
            params.r_base,
            params.r_slope1,
            params.r_slope2,
            params.u_optimal,
            utilisation,
        )
        deposit_rate = fixed_point.deposit_rate(
            utilisation, borrow_rate, params.reserve_factor
        )
        return RateSnapshot(utilisation, borrow_rate, deposit_rate)

    def summary(self) -> PoolState:
        return PoolState(
            **self.aggregates.snapshot(),
            last_rewards_claim_epoch=self.epochs.last(CLAIM),
            last_convert_epoch=self.epochs.last(CONVERT),
            last_rewards_calc_epoch=self.epochs.last(CALCULATE),
        )

    @property
    def harvest_in_flight(self) -> str | None:
        """The harvest step awaiting a remote reply, if any."""
        return self._harvest_in_flight

    def available_liquidity(self) -> int:
        """Stablecoins that can be lent out (holdings minus reserves)."""
        held = self.tokens.balance(self.token_ids.stablecoin)
        return max(0, held - self.aggregates.get("stablecoin_reserves"))

    # ------------------------------------------------------------------
    # Harvest lock
    # ------------------------------------------------------------------

    def begin_harvest(self, step: str) -> None:
        """Lock the pool while ``step`` awaits its remote reply."""
        if self._harvest_in_flight is not None:
            raise HarvestInProgress(
                f"Harvest step {self._harvest_in_flight} is already in flight"
            )
        self._harvest_in_flight = step
        logger.debug("Pool locked for %s", step)

    def end_harvest(self) -> None:
        self._harvest_in_flight = None

    def require_idle(self) -> None:
        if self._harvest_in_flight is not None:
            raise HarvestInProgress(
                f"Pool is locked while {self._harvest_in_flight} awaits its reply"
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_payment(
        payment: TokenPayment, token_id: str, fungible: bool
    ) -> None:
        if payment.token_id != token_id:
            raise InvalidToken(f"Expected {token_id}, got {payment.token_id}")
        if fungible and payment.nonce != 0:
            raise InvalidToken(f"{token_id} is fungible, nonce must be 0")
        if not fungible and payment.nonce == 0:
            raise InvalidToken(f"{token_id} payment needs an instance nonce")
        if payment.amount <= 0:
            raise InvalidAmount("Amount must be greater than 0")

    def _elapsed(self, since: int) -> int:
        return max(0, self.clock.timestamp() - since)

    def _stablecoin(self, amount: int) -> TokenPayment:
        return TokenPayment(self.token_ids.stablecoin, 0, amount)

    def _pay_interest(self, interest: int) -> None:
        reserves = self.aggregates.get("stablecoin_reserves")
        if interest > reserves:
            raise InsufficientReserves(
                f"Interest {interest} exceeds stablecoin reserves {reserves}"
            )
        self.aggregates.adjust("stablecoin_reserves", -interest)
        unclaimed = self.aggregates.get("unclaimed_rewards")
        self.aggregates.set("unclaimed_rewards", max(0, unclaimed - interest))

    # ------------------------------------------------------------------
    # Lenders
    # ------------------------------------------------------------------

    def lend(self, payment: TokenPayment) -> TokenPayment:
        """Deposit stablecoins; returns a lend token of the same amount."""
        self.require_idle()
        self._require_payment(payment, self.token_ids.stablecoin, fungible=True)

        metadata = LendMetadata(
            lend_epoch=self.clock.epoch(), lend_timestamp=self.clock.timestamp()
        )
        with self.store.transaction():
            self.tokens.credit(payment)
            self.aggregates.adjust("lent_amount", payment.amount)
            lend_token = self.tokens.mint(
                self.token_ids.lend, payment.amount, asdict(metadata)
            )

        logger.info("Lent %d, issued lend token #%d", payment.amount, lend_token.nonce)
        return lend_token

    def withdraw(self, lend_payment: TokenPayment) -> TokenPayment:
        """Return a lend token for principal plus accrued interest."""
        self.require_idle()
        self._require_payment(lend_payment, self.token_ids.lend, fungible=False)
        metadata = LendMetadata(
            **self.tokens.attributes(lend_payment.token_id, lend_payment.nonce)
        )

        rates = self.current_rates()
        withdrawal = fixed_point.accrued_withdrawal(
            lend_payment.amount,
            self._elapsed(metadata.lend_timestamp),
            rates.deposit_rate,
        )
        interest = withdrawal - lend_payment.amount

        with self.store.transaction():
            self.tokens.burn(lend_payment)
            self._pay_interest(interest)
            self.aggregates.adjust("lent_amount", -lend_payment.amount)
            self.tokens.debit(self._stablecoin(withdrawal))

        logger.info(
            "Withdrew lend token #%d: principal %d, interest %d",
            lend_payment.nonce, lend_payment.amount, interest,
        )
        return self._stablecoin(withdrawal)

    def lender_claim_rewards(
        self, lend_payment: TokenPayment
    ) -> tuple[TokenPayment, TokenPayment]:
        """Pay out accrued interest and re-issue the lend token from now."""
        self.require_idle()
        self._require_payment(lend_payment, self.token_ids.lend, fungible=False)
        metadata = LendMetadata(
            **self.tokens.attributes(lend_payment.token_id, lend_payment.nonce)
        )

        rates = self.current_rates()
        withdrawal = fixed_point.accrued_withdrawal(
            lend_payment.amount,
            self._elapsed(metadata.lend_timestamp),
            rates.deposit_rate,
        )
        rewards = withdrawal - lend_payment.amount
        if rewards == 0:
            raise NoRewardsToClaim("No rewards to claim")

        fresh = LendMetadata(
            lend_epoch=self.clock.epoch(), lend_timestamp=self.clock.timestamp()
        )
        with self.store.transaction():
            self.tokens.burn(lend_payment)
            self._pay_interest(rewards)
            self.tokens.debit(self._stablecoin(rewards))
            new_lend_token = self.tokens.mint(
                self.token_ids.lend, lend_payment.amount, asdict(fresh)
            )

        return new_lend_token, self._stablecoin(rewards)

    def calculate_total_lender_rewards(self) -> int:
        """Snapshot interest owed on the whole lent amount since the last run.

        Allowed once per epoch, after that epoch's conversion.
        """
        self.require_idle()
        current_epoch = self.clock.epoch()
        self.epochs.require_ran_in(
            CONVERT, current_epoch, MustConvertFirst,
            "Must convert staking rewards for this epoch first",
        )
        self.epochs.require_new_epoch(
            CALCULATE, current_epoch, AlreadyCalculatedThisEpoch,
            "Already calculated rewards this epoch",
        )

        now = self.clock.timestamp()
        last_calc = self.aggregates.get("last_rewards_calc_timestamp")
        elapsed = max(0, now - last_calc) if last_calc else 0
        lent = self.aggregates.get("lent_amount")
        accrued = (
            fixed_point.accrued_withdrawal(lent, elapsed, self.current_rates().deposit_rate)
            - lent
        )

        with self.store.transaction():
            total = self.aggregates.adjust("unclaimed_rewards", accrued)
            self.aggregates.set("last_rewards_calc_timestamp", now)
            self.epochs.advance(CALCULATE, current_epoch)

        logger.info("Lender rewards accrued %d, unclaimed total %d", accrued, total)
        return total

    # ------------------------------------------------------------------
    # Borrowers
    # ------------------------------------------------------------------

    async def borrow(
        self, collateral: TokenPayment
    ) -> tuple[TokenPayment, TokenPayment]:
        """Pledge a liquid staking instance; returns (borrow token, loan)."""
        self.require_idle()
        self._require_payment(collateral, self.token_ids.liquid_staking, fungible=False)

        price = await get_price_for_pair(
            self._oracle, self.token_ids.staked, self.token_ids.stablecoin
        )
        if price is None:
            raise PriceUnavailable(
                f"No price for {self.token_ids.staked}/{self.token_ids.stablecoin}"
            )
        # a harvest may have started while the price was fetched
        self.require_idle()

        decimals = self.config.borrow.staking_token_decimals
        collateral_value = collateral.amount * price // 10**decimals
        loan = collateral_value * self.config.borrow.ltv // fixed_point.BP
        if loan == 0:
            raise InvalidAmount("Collateral is worth too little to borrow against")

        available = self.available_liquidity()
        if loan > available:
            raise InsufficientLiquidity(
                f"Loan {loan} exceeds available liquidity {available}"
            )

        with self.store.transaction():
            position_id = self.positions.append(collateral.nonce)
            self.tokens.credit(collateral)
            self.tokens.debit(self._stablecoin(loan))
            self.aggregates.adjust("borrowed_amount", loan)
            metadata = BorrowMetadata(
                borrow_epoch=self.clock.epoch(),
                borrow_timestamp=self.clock.timestamp(),
                staked_token_price_at_borrow=price,
                staking_position_id=position_id,
                loan_amount=loan,
            )
            borrow_token = self.tokens.mint(
                self.token_ids.borrow, collateral.amount, asdict(metadata)
            )

        logger.info(
            "Borrowed %d against %d of instance %d (position %d)",
            loan, collateral.amount, collateral.nonce, position_id,
        )
        return borrow_token, self._stablecoin(loan)

    def repay(
        self, borrow_payment: TokenPayment, repayment: TokenPayment
    ) -> tuple[TokenPayment, TokenPayment]:
        """Settle a loan; returns (collateral, stablecoin change)."""
        self.require_idle()
        self._require_payment(borrow_payment, self.token_ids.borrow, fungible=False)
        self._require_payment(repayment, self.token_ids.stablecoin, fungible=True)

        metadata = BorrowMetadata(
            **self.tokens.attributes(borrow_payment.token_id, borrow_payment.nonce)
        )
        outstanding = self.tokens.supply(borrow_payment.token_id, borrow_payment.nonce)
        if borrow_payment.amount != outstanding:
            raise InvalidAmount(
                f"Must repay the whole borrow position ({outstanding})"
            )

        interest = fixed_point.accrued_debt(
            metadata.loan_amount,
            self._elapsed(metadata.borrow_timestamp),
            self.current_rates().borrow_rate,
        )
        owed = metadata.loan_amount + interest
        if repayment.amount < owed:
            raise InsufficientRepayment(f"Owed {owed}, paid {repayment.amount}")
        change = repayment.amount - owed

        position = self.positions.get(metadata.staking_position_id)
        instance = position.staking_instance_ref
        held = self.tokens.balance(self.token_ids.liquid_staking, instance)
        collateral = TokenPayment(
            self.token_ids.liquid_staking, instance, min(borrow_payment.amount, held)
        )

        with self.store.transaction():
            self.tokens.burn(borrow_payment)
            self.tokens.credit(repayment)
            if change:
                self.tokens.debit(self._stablecoin(change))
            self.aggregates.adjust("borrowed_amount", -metadata.loan_amount)
            self.aggregates.adjust("stablecoin_reserves", interest)
            self.tokens.debit(collateral)
            if self.tokens.balance(self.token_ids.liquid_staking, instance) == 0:
                self.positions.remove(position.position_id)

        logger.info(
            "Repaid position %d: principal %d, interest %d",
            position.position_id, metadata.loan_amount, interest,
        )
        return collateral, self._stablecoin(change)
