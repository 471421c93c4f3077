"""
Event topic filters and historical event queries.

Builds indexed-log filter topics for relay hub and stake manager events and
runs eth_getLogs scans over a block range.

Ordering: query results are returned exactly as the node returns them, with
no re-sorting and no de-duplication. Any ordering guarantee is the node's,
not this module's; monitors that need a strict order must sort on
(blockNumber, logIndex) themselves.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from eth_utils import event_abi_to_log_topic
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.types import BlockIdentifier, EventData, FilterParams, LogReceipt

from .config import InteractorConfig
from .exceptions import UnknownEventError
from .registry import ContractHandle, ContractRegistry

logger = logging.getLogger(__name__)

# Relay hub events
RELAY_SERVER_REGISTERED = "RelayServerRegistered"
RELAY_WORKERS_ADDED = "RelayWorkersAdded"
TRANSACTION_RELAYED = "TransactionRelayed"
DEPOSITED = "Deposited"

# Stake manager events
STAKE_ADDED = "StakeAdded"
STAKE_UNLOCKED = "StakeUnlocked"
STAKE_WITHDRAWN = "StakeWithdrawn"
STAKE_PENALIZED = "StakePenalized"
HUB_AUTHORIZED = "HubAuthorized"
HUB_UNAUTHORIZED = "HubUnauthorized"

TOPIC_HEX_LENGTH = 64


def address_to_topic(address: str) -> str:
    """
    Encode an address the way it appears in an indexed 32-byte topic slot.

    Strips a 0x prefix, left-pads with zeros to 32 bytes, lower-cases and
    re-prefixes. Applying it to its own output returns the same value.
    """
    bare = address[2:] if address[:2].lower() == "0x" else address
    return "0x" + bare.rjust(TOPIC_HEX_LENGTH, "0").lower()


def topics_for_managers(relay_managers: Iterable[str]) -> list[str]:
    """Indexed-address topics for a list of relay manager addresses."""
    return [address_to_topic(address) for address in relay_managers]


def _event_abis(abi: Sequence[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {entry["name"]: entry for entry in abi if entry.get("type") == "event"}


def event_signature_topics(
    abi: Sequence[dict[str, Any]],
    event_names: Sequence[str],
    contract_name: str = "contract",
) -> list[str]:
    """
    Signature topics (topic 0) of the named events.

    Raises:
        UnknownEventError: If an event is not declared in the ABI
    """
    events = _event_abis(abi)
    topics = []
    for name in event_names:
        if name not in events:
            raise UnknownEventError(name, contract_name)
        topics.append(Web3.to_hex(event_abi_to_log_topic(events[name])))
    return topics


def build_topics(
    abi: Sequence[dict[str, Any]],
    event_names: Sequence[str],
    extra_topics: Sequence[str] = (),
    contract_name: str = "contract",
) -> list[list[str]]:
    """
    Build an eth_getLogs topic filter.

    Slot 0 matches any of the named events. Slot 1 matches the first indexed
    argument against ``extra_topics`` and is only present when that list is
    non-empty, since an empty slot would change the filter's meaning.

    Extra topics may be plain addresses or already-encoded topics; both are
    normalized with address_to_topic.
    """
    topics = [event_signature_topics(abi, event_names, contract_name)]
    if len(extra_topics) > 0:
        topics.append(topics_for_managers(extra_topics))
    return topics


class EventTopicFilter:
    """Queries past relay hub and stake manager events."""

    def __init__(self, w3: AsyncWeb3, registry: ContractRegistry, config: InteractorConfig) -> None:
        """
        Initialize the event filter.

        Args:
            w3: AsyncWeb3 instance used for log queries
            registry: Contract registry for hub and stake manager handles
            config: Interactor configuration with the contract addresses
        """
        self.w3 = w3
        self.registry = registry
        self.config = config

    async def get_past_events_for_hub(
        self,
        event_names: Sequence[str],
        extra_topics: Sequence[str] = (),
        from_block: BlockIdentifier = "earliest",
        to_block: BlockIdentifier = "latest",
    ) -> list[EventData]:
        relay_hub = self.registry.relay_hub(self.config.relay_hub_address)
        return await self.query_past_events(relay_hub, event_names, extra_topics, from_block, to_block)

    async def get_past_events_for_stake_manager(
        self,
        event_names: Sequence[str],
        extra_topics: Sequence[str] = (),
        from_block: BlockIdentifier = "earliest",
        to_block: BlockIdentifier = "latest",
    ) -> list[EventData]:
        stake_manager = self.registry.stake_manager(self.config.stake_manager_address)
        return await self.query_past_events(stake_manager, event_names, extra_topics, from_block, to_block)

    async def query_past_events(
        self,
        handle: ContractHandle,
        event_names: Sequence[str],
        extra_topics: Sequence[str] = (),
        from_block: BlockIdentifier = "earliest",
        to_block: BlockIdentifier = "latest",
    ) -> list[EventData]:
        """
        Fetch and decode past events of a contract over [from_block, to_block].

        Args:
            handle: Contract whose logs are scanned
            event_names: Events to match (topic 0)
            extra_topics: Relay manager addresses (or their topics) to match on topic 1
            from_block: First block of the range (inclusive)
            to_block: Last block of the range (inclusive)

        Returns:
            Decoded events, in the order the node returned the logs
        """
        topics = build_topics(handle.abi, event_names, extra_topics, handle.role.value)
        filter_params: FilterParams = {
            "address": handle.address,
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": topics,
        }

        logger.debug(
            f"Querying {', '.join(event_names)} on {handle} "
            f"from block {from_block} to {to_block}"
        )
        logs = await self.w3.eth.get_logs(filter_params)
        logger.debug(f"Node returned {len(logs)} logs for {handle}")

        event_names_by_topic = {
            Web3.to_hex(event_abi_to_log_topic(event_abi)): name
            for name, event_abi in _event_abis(handle.abi).items()
        }
        return [self._decode(handle, event_names_by_topic, log) for log in logs]

    def _decode(self, handle: ContractHandle, event_names_by_topic: dict[str, str], log: LogReceipt) -> EventData:
        topic = Web3.to_hex(HexBytes(log["topics"][0]))
        name = event_names_by_topic.get(topic)
        if name is None:
            raise UnknownEventError(topic, handle.role.value)
        return getattr(handle.events, name)().process_log(log)
