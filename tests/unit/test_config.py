"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from helpers import SAMPLE_YAML
from savings_account.config import (
    AppConfig,
    BorrowConfig,
    RatesConfig,
    TokensConfig,
    _interpolate_env,
    _validate,
    load_config,
)
from savings_account.models import RateParameters


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ADDR", "erd1abc")
        result = _interpolate_env({"address": "${ADDR}", "plain": "text"})
        assert result == {"address": "erd1abc", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.pool.epoch_length_seconds == 3600
        assert cfg.tokens.liquid_staking == "LSTK-123456"
        assert cfg.borrow.ltv == 750_000_000
        assert cfg.services.delegation.rpc_endpoints == ("https://rpc.example.com",)
        assert cfg.services.delegation.rpc_timeout == 10
        assert cfg.services.swap.min_output == 5
        assert cfg.services.price_aggregator.static_prices == {"WEGLD/USDC": 100}
        assert cfg.keeper.interval_minutes == 15

    def test_rates_become_parameters(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert cfg.rates.as_parameters() == RateParameters(
            r_base=0,
            r_slope1=100_000_000,
            r_slope2=1_000_000_000,
            u_optimal=800_000_000,
            reserve_factor=100_000_000,
        )

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_DEX_ADDR", "erd1pairfromenv")
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(
            SAMPLE_YAML.replace("address: erd1dexpair", 'address: "${TEST_DEX_ADDR}"')
        )
        cfg = load_config(cfg_file)
        assert cfg.services.swap.address == "erd1pairfromenv"

    def test_missing_token_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(SAMPLE_YAML.replace("  lend: LEND-123456\n", ""))
        with pytest.raises(ValueError, match="Token 'lend' is not configured"):
            load_config(cfg_file)

    def test_unknown_provider_raises(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "config.yaml"
        cfg_file.write_text(SAMPLE_YAML.replace("provider: simulated", "provider: carrier"))
        with pytest.raises(ValueError, match="Unknown swap provider"):
            load_config(cfg_file)


class TestValidate:
    @pytest.fixture()
    def valid(self, sample_app_config: AppConfig) -> AppConfig:
        _validate(sample_app_config)
        return sample_app_config

    def test_u_optimal_bounds(self, valid: AppConfig) -> None:
        for bad in (0, 1_000_000_000):
            cfg = replace(valid, rates=replace(valid.rates, u_optimal=bad))
            with pytest.raises(ValueError, match="u_optimal"):
                _validate(cfg)

    def test_reserve_factor_bounds(self, valid: AppConfig) -> None:
        cfg = replace(valid, rates=RatesConfig(reserve_factor=1_000_000_001))
        with pytest.raises(ValueError, match="reserve_factor"):
            _validate(cfg)

    def test_ltv_bounds(self, valid: AppConfig) -> None:
        cfg = replace(valid, borrow=BorrowConfig(ltv=0))
        with pytest.raises(ValueError, match="ltv"):
            _validate(cfg)

    def test_empty_tokens(self, valid: AppConfig) -> None:
        cfg = replace(valid, tokens=TokensConfig())
        with pytest.raises(ValueError, match="not configured"):
            _validate(cfg)

    def test_swap_needs_address(self, valid: AppConfig) -> None:
        services = replace(
            valid.services, swap=replace(valid.services.swap, address="")
        )
        with pytest.raises(ValueError, match="no address"):
            _validate(replace(valid, services=services))

    def test_rpc_needs_endpoints(self, valid: AppConfig) -> None:
        services = replace(
            valid.services,
            delegation=replace(valid.services.delegation, provider="rpc"),
        )
        with pytest.raises(ValueError, match="rpc_endpoints"):
            _validate(replace(valid, services=services))
