"""Unit tests for CLI argument parsing."""
from __future__ import annotations

from pathlib import Path

import pytest

from savings_account.cli import build_parser, main
from savings_account.storage import JsonFileStore


class TestBuildParser:
    def test_status_command(self) -> None:
        args = build_parser().parse_args(["status"])
        assert args.command == "status"

    def test_positions_command(self) -> None:
        args = build_parser().parse_args(["positions"])
        assert args.command == "positions"

    def test_harvest_command(self) -> None:
        args = build_parser().parse_args(["harvest"])
        assert args.command == "harvest"

    def test_keeper_command_default_interval(self) -> None:
        args = build_parser().parse_args(["keeper"])
        assert args.command == "keeper"
        assert args.interval is None

    def test_keeper_command_custom_interval(self) -> None:
        args = build_parser().parse_args(["keeper", "10"])
        assert args.interval == 10

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "status"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "status"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None


class TestMain:
    def test_no_command_exits(self) -> None:
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    def test_status_prints_report(
        self,
        monkeypatch: pytest.MonkeyPatch,
        sample_yaml_path: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        main(["--config", str(sample_yaml_path), "status"])
        out = capsys.readouterr().out
        assert "Savings account pool" in out
        assert "Lent: 0" in out

    def test_harvest_with_no_positions(
        self,
        monkeypatch: pytest.MonkeyPatch,
        sample_yaml_path: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        main(["--config", str(sample_yaml_path), "harvest"])
        assert "claimed None" in capsys.readouterr().out

    def test_missing_config_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(tmp_path / "absent.yaml"), "status"])
        assert exc.value.code == 2

    def test_state_file_in_use_exits(
        self, monkeypatch: pytest.MonkeyPatch, sample_yaml_path: Path, tmp_path: Path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        keeper_store = JsonFileStore(tmp_path / "state.json")
        try:
            with pytest.raises(SystemExit) as exc:
                main(["--config", str(sample_yaml_path), "harvest"])
        finally:
            keeper_store.close()
        assert exc.value.code == 2
