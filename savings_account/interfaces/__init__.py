"""Protocol interfaces for the savings account pool."""
from .clock import Clock
from .delegation import DelegationService
from .price_oracle import PriceOracle
from .store import StateStore
from .swap_venue import SwapContinuation, SwapVenue

__all__ = [
    "Clock",
    "DelegationService",
    "PriceOracle",
    "StateStore",
    "SwapContinuation",
    "SwapVenue",
]
