"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import BP
from .models import RateParameters

logger = logging.getLogger(__name__)

DELEGATION_PROVIDERS = ("rpc", "simulated")
SWAP_PROVIDERS = ("rpc", "simulated")
PRICE_PROVIDERS = ("http", "static")

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolConfig:
    state_file: str = "pool_state.json"
    epoch_length_seconds: int = 86_400
    genesis_timestamp: int = 0


@dataclass(frozen=True)
class RatesConfig:
    """Interest curve parameters, scaled by BP (10**9 == 1.0)."""

    r_base: int = 0
    r_slope1: int = 100_000_000
    r_slope2: int = 1_000_000_000
    u_optimal: int = 800_000_000
    reserve_factor: int = 100_000_000

    def as_parameters(self) -> RateParameters:
        return RateParameters(
            r_base=self.r_base,
            r_slope1=self.r_slope1,
            r_slope2=self.r_slope2,
            u_optimal=self.u_optimal,
            reserve_factor=self.reserve_factor,
        )


@dataclass(frozen=True)
class BorrowConfig:
    ltv: int = 750_000_000
    staking_token_decimals: int = 18


@dataclass(frozen=True)
class TokensConfig:
    stablecoin: str = ""
    liquid_staking: str = ""
    staked: str = ""
    lend: str = ""
    borrow: str = ""


@dataclass(frozen=True)
class DelegationConfig:
    provider: str = "rpc"
    address: str = ""
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    rewards_divisor: int = 10


@dataclass(frozen=True)
class SwapConfig:
    provider: str = "rpc"
    address: str = ""
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    min_output: int = 0
    simulated_rate: int = BP


@dataclass(frozen=True)
class PriceAggregatorConfig:
    provider: str = "http"
    address: str = ""
    url: str = ""
    static_prices: dict[str, int] = field(default_factory=dict)
    static_decimals: int = 0


@dataclass(frozen=True)
class ServicesConfig:
    delegation: DelegationConfig = field(default_factory=DelegationConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)
    price_aggregator: PriceAggregatorConfig = field(
        default_factory=PriceAggregatorConfig
    )


@dataclass(frozen=True)
class KeeperConfig:
    interval_minutes: int = 60


@dataclass(frozen=True)
class AppConfig:
    pool: PoolConfig = field(default_factory=PoolConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)
    borrow: BorrowConfig = field(default_factory=BorrowConfig)
    tokens: TokensConfig = field(default_factory=TokensConfig)
    services: ServicesConfig = field(default_factory=ServicesConfig)
    keeper: KeeperConfig = field(default_factory=KeeperConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_pool(raw: dict[str, Any]) -> PoolConfig:
    return PoolConfig(
        state_file=str(raw.get("state_file", PoolConfig.state_file)),
        epoch_length_seconds=int(raw.get("epoch_length_seconds", 86_400)),
        genesis_timestamp=int(raw.get("genesis_timestamp", 0)),
    )


def _build_rates(raw: dict[str, Any]) -> RatesConfig:
    defaults = RatesConfig()
    return RatesConfig(
        r_base=int(raw.get("r_base", defaults.r_base)),
        r_slope1=int(raw.get("r_slope1", defaults.r_slope1)),
        r_slope2=int(raw.get("r_slope2", defaults.r_slope2)),
        u_optimal=int(raw.get("u_optimal", defaults.u_optimal)),
        reserve_factor=int(raw.get("reserve_factor", defaults.reserve_factor)),
    )


def _build_borrow(raw: dict[str, Any]) -> BorrowConfig:
    return BorrowConfig(
        ltv=int(raw.get("ltv", BorrowConfig.ltv)),
        staking_token_decimals=int(raw.get("staking_token_decimals", 18)),
    )


def _build_tokens(raw: dict[str, Any]) -> TokensConfig:
    return TokensConfig(
        stablecoin=raw.get("stablecoin", ""),
        liquid_staking=raw.get("liquid_staking", ""),
        staked=raw.get("staked", ""),
        lend=raw.get("lend", ""),
        borrow=raw.get("borrow", ""),
    )


def _build_services(raw: dict[str, Any]) -> ServicesConfig:
    dg = raw.get("delegation", {})
    sw = raw.get("swap", {})
    pa = raw.get("price_aggregator", {})
    return ServicesConfig(
        delegation=DelegationConfig(
            provider=dg.get("provider", "rpc"),
            address=dg.get("address", ""),
            rpc_endpoints=tuple(dg.get("rpc_endpoints", [])),
            rpc_timeout=int(dg.get("rpc_timeout", 30)),
            rewards_divisor=int(dg.get("rewards_divisor", 10)),
        ),
        swap=SwapConfig(
            provider=sw.get("provider", "rpc"),
            address=sw.get("address", ""),
            rpc_endpoints=tuple(sw.get("rpc_endpoints", [])),
            rpc_timeout=int(sw.get("rpc_timeout", 30)),
            min_output=int(sw.get("min_output", 0)),
            simulated_rate=int(sw.get("simulated_rate", BP)),
        ),
        price_aggregator=PriceAggregatorConfig(
            provider=pa.get("provider", "http"),
            address=pa.get("address", ""),
            url=pa.get("url", ""),
            static_prices={k: int(v) for k, v in pa.get("static_prices", {}).items()},
            static_decimals=int(pa.get("static_decimals", 0)),
        ),
    )


def _build_keeper(raw: dict[str, Any]) -> KeeperConfig:
    return KeeperConfig(interval_minutes=int(raw.get("interval_minutes", 60)))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        pool=_build_pool(raw.get("pool", {})),
        rates=_build_rates(raw.get("rates", {})),
        borrow=_build_borrow(raw.get("borrow", {})),
        tokens=_build_tokens(raw.get("tokens", {})),
        services=_build_services(raw.get("services", {})),
        keeper=_build_keeper(raw.get("keeper", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    for name in ("stablecoin", "liquid_staking", "staked", "lend", "borrow"):
        if not getattr(cfg.tokens, name):
            raise ValueError(f"Token '{name}' is not configured")

    if cfg.pool.epoch_length_seconds <= 0:
        raise ValueError("pool.epoch_length_seconds must be positive")

    rates = cfg.rates
    if not 0 < rates.u_optimal < BP:
        raise ValueError("rates.u_optimal must be strictly between 0 and BP")
    if not 0 <= rates.reserve_factor <= BP:
        raise ValueError("rates.reserve_factor must be between 0 and BP")
    if min(rates.r_base, rates.r_slope1, rates.r_slope2) < 0:
        raise ValueError("Rate parameters must be non-negative")
    if not 0 < cfg.borrow.ltv <= BP:
        raise ValueError("borrow.ltv must be in (0, BP]")

    services = cfg.services
    if services.delegation.provider not in DELEGATION_PROVIDERS:
        raise ValueError(
            f"Unknown delegation provider '{services.delegation.provider}'"
        )
    if services.swap.provider not in SWAP_PROVIDERS:
        raise ValueError(f"Unknown swap provider '{services.swap.provider}'")
    if services.price_aggregator.provider not in PRICE_PROVIDERS:
        raise ValueError(
            f"Unknown price aggregator provider '{services.price_aggregator.provider}'"
        )
    if not services.swap.address:
        raise ValueError("Swap venue has no address")
    for name, svc in (("delegation", services.delegation), ("swap", services.swap)):
        if svc.provider == "rpc" and not svc.rpc_endpoints:
            raise ValueError(f"Service '{name}' uses rpc but has no rpc_endpoints")
    if services.delegation.rewards_divisor <= 0:
        raise ValueError("delegation.rewards_divisor must be positive")
