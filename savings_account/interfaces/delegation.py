"""Delegation service protocol — liquid staking rewards claiming."""
from typing import Protocol, Sequence

from ..models import ClaimRewardsReply, TokenPayment


class DelegationService(Protocol):
    """Abstract interface for the service that re-issues staking instances."""

    async def claim_rewards(
        self, transfers: Sequence[TokenPayment]
    ) -> ClaimRewardsReply: ...
