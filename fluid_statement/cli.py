"""Command-line interface for Fluid position statements."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from .config import AppConfig, load_config
from .errors import ConnectivityError, InvalidInputError, NotFoundError
from .logging_setup import configure_logging
from .services import StatementService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_NOT_FOUND = 2
EXIT_CONNECTIVITY = 3


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="fluid-statement",
        description="Fluid lending position statements",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    positions_parser = sub.add_parser(
        "positions", help="List active positions of a wallet"
    )
    positions_parser.add_argument("address", help="Owner wallet address")

    position_parser = sub.add_parser("position", help="Show one position by NFT id")
    position_parser.add_argument("nft_id", help="Position NFT id")

    statement_parser = sub.add_parser(
        "statement", help="Positions, prices and transaction history as JSON"
    )
    target = statement_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--address", default=None, help="Owner wallet address")
    target.add_argument("--nft-id", default=None, help="Position NFT id")
    statement_parser.add_argument(
        "--no-history",
        action="store_true",
        help="Skip the Etherscan transaction history",
    )

    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def _run(args: argparse.Namespace, config: AppConfig) -> int:
    """Execute the selected command."""
    service = StatementService(config)

    if args.command == "positions":
        _, positions = await service.fetch_positions(address=args.address)
        _emit([p.to_dict() for p in positions])
    elif args.command == "position":
        _, positions = await service.fetch_positions(nft_id=args.nft_id)
        _emit(positions[0].to_dict())
    elif args.command == "statement":
        report = await service.generate(
            address=args.address,
            nft_id=args.nft_id,
            include_history=not args.no_history,
        )
        _emit(report.to_dict())
    else:
        build_parser().print_help()
        return EXIT_USAGE
    return EXIT_OK


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_USAGE)

    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(EXIT_USAGE)

    try:
        code = asyncio.run(_run(args, config))
    except InvalidInputError as e:
        logger.error("%s", e)
        code = EXIT_USAGE
    except NotFoundError as e:
        logger.error("%s", e)
        code = EXIT_NOT_FOUND
    except ConnectivityError as e:
        logger.error("Could not reach the RPC endpoint: %s", e)
        code = EXIT_CONNECTIVITY
    sys.exit(code)
