#!/usr/bin/env python3

import argparse
import asyncio
import logging
import sys

from web3 import Web3

from relay_interactor.events import (
    HUB_UNAUTHORIZED,
    RELAY_SERVER_REGISTERED,
    STAKE_PENALIZED,
    STAKE_UNLOCKED,
)
from relay_interactor.interactor import ContractInteractor

# Set up root logger
logger = logging.getLogger(__name__)

DEFAULT_HUB_EVENTS = [RELAY_SERVER_REGISTERED]
DEFAULT_STAKE_MANAGER_EVENTS = [STAKE_UNLOCKED, HUB_UNAUTHORIZED, STAKE_PENALIZED]


def _block(value: str) -> int | str:
    if value in ("earliest", "latest", "pending", "safe", "finalized"):
        return value
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid block: {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Relay contract interactor")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("chain-info", help="Print chain id, network id and network type")

    events = subparsers.add_parser("events", help="Query past relay hub or stake manager events")
    events.add_argument(
        "--contract",
        choices=["hub", "stake-manager"],
        default="hub",
        help="Contract whose events are queried"
    )
    events.add_argument(
        "--event",
        dest="events",
        action="append",
        default=None,
        help="Event name (repeatable); defaults depend on --contract"
    )
    events.add_argument(
        "--manager",
        dest="managers",
        action="append",
        default=[],
        help="Relay manager address to filter on (repeatable)"
    )
    events.add_argument("--from-block", type=_block, default="earliest")
    events.add_argument("--to-block", type=_block, default="latest")
    return parser


async def show_chain_info(interactor: ContractInteractor) -> None:
    info = await interactor.init()
    print(f"Chain ID:     {info.chain_id}")
    print(f"Network ID:   {info.network_id}")
    print(f"Network type: {info.network_type}")
    print(f"Signing as:   {info.signing_options.chain} ({info.signing_options.hardfork})")


async def show_events(interactor: ContractInteractor, args: argparse.Namespace) -> None:
    extra_topics = interactor.topics_for_managers(args.managers)
    if args.contract == "hub":
        names = args.events or DEFAULT_HUB_EVENTS
        events = await interactor.get_past_events_for_hub(names, extra_topics, args.from_block, args.to_block)
    else:
        names = args.events or DEFAULT_STAKE_MANAGER_EVENTS
        events = await interactor.get_past_events_for_stake_manager(
            names, extra_topics, args.from_block, args.to_block
        )

    logger.info(f"Found {len(events)} {', '.join(names)} events")
    for event in events:
        args_text = ", ".join(f"{key}={value}" for key, value in event["args"].items())
        print(
            f"{event['blockNumber']}:{event['logIndex']} {event['event']} "
            f"tx={Web3.to_hex(event['transactionHash'])} {args_text}"
        )


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the relay interactor CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        interactor = ContractInteractor.from_env()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Required environment variables:")
        logger.error("  - RELAY_HUB_ADDRESS: RelayHub contract address")
        logger.error("  - STAKE_MANAGER_ADDRESS: StakeManager contract address")
        logger.error("Optional: RPC_URL, GTX_DATA_NONZERO, REQUEST_TIMEOUT, PRIVATE_KEY")
        return 1

    try:
        if args.command == "chain-info":
            await show_chain_info(interactor)
        else:
            await show_events(interactor, args)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
