"""Delegation service clients."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from ..models import ClaimRewardsReply, TokenPayment
from .rpc import JsonRpcClient

logger = logging.getLogger(__name__)

CLAIM_REWARDS_METHOD = "claimRewards"


def _payment_to_json(payment: TokenPayment) -> dict[str, Any]:
    return {
        "token_id": payment.token_id,
        "nonce": payment.nonce,
        "amount": str(payment.amount),
    }


def _payment_from_json(raw: dict[str, Any]) -> TokenPayment:
    return TokenPayment(
        token_id=str(raw["token_id"]),
        nonce=int(raw["nonce"]),
        amount=int(raw["amount"]),
    )


class RpcDelegationService:
    """Delegation contract reached over JSON-RPC."""

    def __init__(self, client: JsonRpcClient, address: str) -> None:
        self._client = client
        self.address = address

    async def claim_rewards(
        self, transfers: Sequence[TokenPayment]
    ) -> ClaimRewardsReply:
        result = await self._client.rpc_call(
            CLAIM_REWARDS_METHOD,
            [self.address, [_payment_to_json(t) for t in transfers]],
        )
        new_instances = tuple(
            _payment_from_json(raw) for raw in result.get("transfers", [])
        )
        rewards = int(result.get("rewards_amount", 0))
        logger.info(
            "Delegation returned %d instances and %d in rewards",
            len(new_instances),
            rewards,
        )
        return ClaimRewardsReply(new_instances=new_instances, rewards_amount=rewards)


class SimulatedDelegationService:
    """In-process delegation: burns each instance and re-mints the same quantity.

    Rewards are ``total // rewards_divisor`` of the base staked asset.
    """

    def __init__(
        self,
        liquid_staking_token_id: str,
        rewards_divisor: int = 10,
        first_nonce: int = 1_000_000,
    ) -> None:
        self.liquid_staking_token_id = liquid_staking_token_id
        self.rewards_divisor = rewards_divisor
        self._next_nonce = first_nonce

    async def claim_rewards(
        self, transfers: Sequence[TokenPayment]
    ) -> ClaimRewardsReply:
        new_instances: list[TokenPayment] = []
        total_amount = 0
        for transfer in transfers:
            if transfer.token_id != self.liquid_staking_token_id:
                raise RuntimeError(f"Invalid token {transfer.token_id}")
            new_instances.append(
                TokenPayment(transfer.token_id, self._next_nonce, transfer.amount)
            )
            self._next_nonce += 1
            total_amount += transfer.amount

        return ClaimRewardsReply(
            new_instances=tuple(new_instances),
            rewards_amount=total_amount // self.rewards_divisor,
        )
