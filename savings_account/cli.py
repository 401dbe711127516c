"""savings-account command line: inspect the pool and drive the harvest keeper."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable

from .config import load_config
from .errors import SavingsAccountError
from .logging_setup import configure_logging
from .services import HarvestKeeper, build_keeper

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


async def _status(keeper: HarvestKeeper, args: argparse.Namespace) -> None:
    print(keeper.status_report())


async def _positions(keeper: HarvestKeeper, args: argparse.Namespace) -> None:
    print(keeper.positions_report())


async def _harvest(keeper: HarvestKeeper, args: argparse.Namespace) -> None:
    report = await keeper.run_once()
    print(
        f"Epoch {report.epoch}: claimed {report.claimed_positions}, "
        f"converted {report.converted_amount}, "
        f"unclaimed rewards {report.unclaimed_rewards}\n"
    )
    print(keeper.status_report())


async def _keeper(keeper: HarvestKeeper, args: argparse.Namespace) -> None:
    await keeper.run_continuous(args.interval)


COMMANDS: dict[str, Callable[[HarvestKeeper, argparse.Namespace], Awaitable[None]]] = {
    "status": _status,
    "positions": _positions,
    "harvest": _harvest,
    "keeper": _keeper,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="savings-account",
        description="Stablecoin savings pool lending against liquid staking collateral",
    )
    parser.add_argument("--config", default=None, help="config.yaml to load")
    parser.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.add_parser("status", help="show totals, rates and epoch checkpoints")
    commands.add_parser("positions", help="walk the staking position list")
    commands.add_parser("harvest", help="run the epoch steps that are due, once")
    keeper = commands.add_parser("keeper", help="harvest every N minutes until stopped")
    keeper.add_argument(
        "interval", nargs="?", type=int, default=None,
        help="minutes between cycles (default from config)",
    )
    return parser


async def _dispatch(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    keeper = build_keeper(config)
    try:
        await COMMANDS[args.command](keeper, args)
    finally:
        keeper.account.store.close()


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        asyncio.run(_dispatch(args))
    except (FileNotFoundError, ValueError, SavingsAccountError) as e:
        logger.error("%s failed: %s", args.command, e)
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Interrupted")
