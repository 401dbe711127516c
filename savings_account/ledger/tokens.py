"""Token holdings of the pool and the lend/borrow tokens it issues."""
from __future__ import annotations

import logging
from typing import Any

from ..errors import InsufficientBalance, InvalidAmount, InvalidToken
from ..interfaces.store import StateStore
from ..models import TokenPayment

logger = logging.getLogger(__name__)


class TokenLedger:
    """Balances held by the pool, keyed by (token, nonce).

    Issued tokens (lend and borrow positions) carry attributes and a tracked
    outstanding supply; burning the last unit drops the attributes.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def balance(self, token_id: str, nonce: int = 0) -> int:
        return int(self._store.get(f"balance:{token_id}:{nonce}", 0))

    def credit(self, payment: TokenPayment) -> None:
        if payment.amount < 0:
            raise InvalidAmount(f"Negative amount for {payment.token_id}")
        key = f"balance:{payment.token_id}:{payment.nonce}"
        self._store.set(key, self.balance(payment.token_id, payment.nonce) + payment.amount)

    def debit(self, payment: TokenPayment) -> None:
        if payment.amount < 0:
            raise InvalidAmount(f"Negative amount for {payment.token_id}")
        held = self.balance(payment.token_id, payment.nonce)
        if payment.amount > held:
            raise InsufficientBalance(
                f"Pool holds {held} of {payment.token_id}#{payment.nonce}, "
                f"needs {payment.amount}"
            )
        key = f"balance:{payment.token_id}:{payment.nonce}"
        if payment.amount == held:
            self._store.delete(key)
        else:
            self._store.set(key, held - payment.amount)

    # ------------------------------------------------------------------
    # Issued tokens
    # ------------------------------------------------------------------

    def mint(
        self, token_id: str, amount: int, attributes: dict[str, Any]
    ) -> TokenPayment:
        """Create a new nonce of ``token_id`` and return it for sending out."""
        if amount <= 0:
            raise InvalidAmount("Cannot mint a zero amount")
        nonce = int(self._store.get(f"nft_nonce:{token_id}", 0)) + 1
        self._store.set(f"nft_nonce:{token_id}", nonce)
        self._store.set(f"nft:{token_id}:{nonce}", dict(attributes))
        self._store.set(f"nft_supply:{token_id}:{nonce}", amount)
        logger.debug("Minted %s#%d amount=%d", token_id, nonce, amount)
        return TokenPayment(token_id, nonce, amount)

    def supply(self, token_id: str, nonce: int) -> int:
        return int(self._store.get(f"nft_supply:{token_id}:{nonce}", 0))

    def attributes(self, token_id: str, nonce: int) -> dict[str, Any]:
        attrs = self._store.get(f"nft:{token_id}:{nonce}")
        if attrs is None:
            raise InvalidToken(f"Unknown token {token_id}#{nonce}")
        return attrs

    def burn(self, payment: TokenPayment) -> None:
        outstanding = self.supply(payment.token_id, payment.nonce)
        if payment.amount <= 0 or payment.amount > outstanding:
            raise InsufficientBalance(
                f"Cannot burn {payment.amount} of {payment.token_id}#{payment.nonce} "
                f"(outstanding {outstanding})"
            )
        remaining = outstanding - payment.amount
        if remaining:
            self._store.set(f"nft_supply:{payment.token_id}:{payment.nonce}", remaining)
        else:
            self._store.delete(f"nft_supply:{payment.token_id}:{payment.nonce}")
            self._store.delete(f"nft:{payment.token_id}:{payment.nonce}")
