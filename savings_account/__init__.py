"""Collateralized stablecoin savings pool with staking reward harvesting."""

__version__ = "0.1.0"
