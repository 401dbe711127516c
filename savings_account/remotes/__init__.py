"""Remote service clients and the provider registry."""
from __future__ import annotations

from typing import Any, Callable

from ..config import DelegationConfig, SwapConfig, TokensConfig
from ..interfaces.delegation import DelegationService
from ..interfaces.swap_venue import SwapVenue
from .delegation import RpcDelegationService, SimulatedDelegationService
from .dex import RpcSwapVenue, SimulatedSwapVenue
from .rpc import JsonRpcClient, JsonRpcError

# Registries of service factories keyed by configured provider name.
_DELEGATION_FACTORIES: dict[str, Callable[[DelegationConfig, TokensConfig], Any]] = {
    "rpc": lambda cfg, tokens: RpcDelegationService(
        JsonRpcClient(cfg.rpc_endpoints, cfg.rpc_timeout), cfg.address
    ),
    "simulated": lambda cfg, tokens: SimulatedDelegationService(
        tokens.liquid_staking, cfg.rewards_divisor
    ),
}

_SWAP_FACTORIES: dict[str, Callable[[SwapConfig], Any]] = {
    "rpc": lambda cfg: RpcSwapVenue(
        JsonRpcClient(cfg.rpc_endpoints, cfg.rpc_timeout), cfg.address
    ),
    "simulated": lambda cfg: SimulatedSwapVenue(cfg.address, cfg.simulated_rate),
}


def build_delegation_service(
    config: DelegationConfig, tokens: TokensConfig
) -> DelegationService:
    factory = _DELEGATION_FACTORIES.get(config.provider)
    if factory is None:
        raise ValueError(f"No delegation factory for provider '{config.provider}'")
    return factory(config, tokens)


def build_swap_venue(config: SwapConfig) -> SwapVenue:
    factory = _SWAP_FACTORIES.get(config.provider)
    if factory is None:
        raise ValueError(f"No swap factory for provider '{config.provider}'")
    return factory(config)


__all__ = [
    "JsonRpcClient",
    "JsonRpcError",
    "RpcDelegationService",
    "RpcSwapVenue",
    "SimulatedDelegationService",
    "SimulatedSwapVenue",
    "build_delegation_service",
    "build_swap_venue",
]
