"""Storage-resident ledgers: aggregates, staking positions, epochs, token holdings."""
from .aggregates import AggregateLedger
from .epochs import CALCULATE, CLAIM, CONVERT, EpochGuard
from .positions import PositionLedger
from .tokens import TokenLedger

__all__ = [
    "AggregateLedger",
    "CALCULATE",
    "CLAIM",
    "CONVERT",
    "EpochGuard",
    "PositionLedger",
    "TokenLedger",
]
