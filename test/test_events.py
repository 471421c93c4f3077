"""Tests for event topic filters and past-event queries."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_abi import encode
from eth_utils import event_abi_to_log_topic
from hexbytes import HexBytes
from web3 import Web3

from relay_interactor.config import InteractorConfig
from relay_interactor.events import (
    RELAY_SERVER_REGISTERED,
    RELAY_WORKERS_ADDED,
    STAKE_UNLOCKED,
    EventTopicFilter,
    address_to_topic,
    build_topics,
    event_signature_topics,
    topics_for_managers,
)
from relay_interactor.exceptions import UnknownEventError
from relay_interactor.registry import ContractRegistry, ContractRole
from relay_interactor.utils.contract_utility import ContractUtility

HUB = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"
STAKE_MANAGER = "0x" + "22" * 20
MANAGER = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"

REGISTERED_TOPIC = Web3.to_hex(Web3.keccak(text="RelayServerRegistered(address,uint256,uint256,string)"))


@pytest.fixture
def registry():
    util = ContractUtility("http://localhost:8545")
    return ContractRegistry(util.w3, util)


@pytest.fixture
def mock_w3():
    w3 = MagicMock()
    w3.eth.get_logs = AsyncMock(return_value=[])
    return w3


@pytest.fixture
def event_filter(mock_w3, registry):
    config = InteractorConfig(relay_hub_address=HUB, stake_manager_address=STAKE_MANAGER)
    return EventTopicFilter(mock_w3, registry, config)


def registered_log(manager, block_number, log_index=0, url="https://relay.example"):
    """A RelayServerRegistered log as eth_getLogs returns it."""
    return {
        "address": HUB,
        "topics": [HexBytes(REGISTERED_TOPIC), HexBytes(address_to_topic(manager))],
        "data": HexBytes(encode(["uint256", "uint256", "string"], [1, 10, url])),
        "blockNumber": block_number,
        "blockHash": HexBytes(b"\x01" * 32),
        "transactionHash": HexBytes(bytes([block_number]) * 32),
        "transactionIndex": 0,
        "logIndex": log_index,
        "removed": False,
    }


class TestAddressToTopic:
    """Tests for address_to_topic."""

    def test_pads_and_lowercases(self):
        assert address_to_topic(MANAGER) == "0x000000000000000000000000abcdef0123456789abcdef0123456789abcdef01"

    def test_idempotent(self):
        topic = address_to_topic(MANAGER)

        assert address_to_topic(topic) == topic

    def test_uppercase_prefix(self):
        assert address_to_topic("0X" + "AB" * 20) == "0x" + "0" * 24 + "ab" * 20

    def test_without_prefix(self):
        assert address_to_topic("ab" * 20) == "0x" + "0" * 24 + "ab" * 20

    @pytest.mark.parametrize("address", [MANAGER, "0x" + "00" * 20, "0x1"])
    def test_topic_length(self, address):
        topic = address_to_topic(address)

        assert len(topic) == 66
        assert topic == topic.lower()

    def test_topics_for_managers_keeps_order(self):
        managers = ["0x" + "11" * 20, "0x" + "22" * 20]

        assert topics_for_managers(managers) == [address_to_topic(m) for m in managers]

    def test_topics_for_no_managers(self):
        assert topics_for_managers([]) == []


class TestBuildTopics:
    """Tests for build_topics."""

    def test_signature_topic(self, registry):
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)

        assert event_signature_topics(hub_abi, [RELAY_SERVER_REGISTERED]) == [REGISTERED_TOPIC]

    def test_without_extra_topics(self, registry):
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)

        topics = build_topics(hub_abi, [RELAY_SERVER_REGISTERED, RELAY_WORKERS_ADDED])

        assert len(topics) == 1
        assert len(topics[0]) == 2
        assert topics[0][0] == REGISTERED_TOPIC

    def test_with_extra_topics(self, registry):
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)
        manager_topics = topics_for_managers([MANAGER])

        topics = build_topics(hub_abi, [RELAY_SERVER_REGISTERED], manager_topics)

        assert topics == [[REGISTERED_TOPIC], manager_topics]

    def test_raw_addresses_are_normalized(self, registry):
        """Checksummed addresses end up as padded lower-case topics."""
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)

        topics = build_topics(hub_abi, [RELAY_SERVER_REGISTERED], [MANAGER, "0x" + "11" * 20])

        assert topics[1] == [
            "0x000000000000000000000000abcdef0123456789abcdef0123456789abcdef01",
            "0x" + "0" * 24 + "11" * 20,
        ]

    def test_encoded_topics_unchanged(self, registry):
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)
        manager_topics = topics_for_managers([MANAGER])

        topics = build_topics(hub_abi, [RELAY_SERVER_REGISTERED], manager_topics)

        assert topics[1] == manager_topics

    def test_unknown_event(self, registry):
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)

        with pytest.raises(UnknownEventError, match="Event NoSuchEvent not found in IRelayHub ABI"):
            build_topics(hub_abi, ["NoSuchEvent"], contract_name="IRelayHub")

    def test_event_from_other_contract(self, registry):
        """Stake manager events are not declared on the hub."""
        hub_abi = registry.abi_for(ContractRole.RELAY_HUB)

        with pytest.raises(UnknownEventError):
            build_topics(hub_abi, [STAKE_UNLOCKED])


class TestEventTopicFilter:
    """Tests for EventTopicFilter queries."""

    @pytest.mark.asyncio
    async def test_hub_query_filter_params(self, event_filter, mock_w3):
        manager_topics = topics_for_managers([MANAGER])

        events = await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED], manager_topics, 10, 20)

        assert events == []
        mock_w3.eth.get_logs.assert_awaited_once_with({
            "address": HUB,
            "fromBlock": 10,
            "toBlock": 20,
            "topics": [[REGISTERED_TOPIC], manager_topics],
        })

    @pytest.mark.asyncio
    async def test_hub_query_normalizes_manager_address(self, event_filter, mock_w3):
        await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED], [MANAGER])

        filter_params = mock_w3.eth.get_logs.call_args.args[0]
        assert filter_params["topics"] == [[REGISTERED_TOPIC], [address_to_topic(MANAGER)]]
        assert filter_params["topics"][1][0] == "0x" + "0" * 24 + MANAGER[2:].lower()

    @pytest.mark.asyncio
    async def test_stake_manager_query_defaults(self, event_filter, mock_w3):
        await event_filter.get_past_events_for_stake_manager([STAKE_UNLOCKED])

        filter_params = mock_w3.eth.get_logs.call_args.args[0]
        assert filter_params["address"] == Web3.to_checksum_address(STAKE_MANAGER)
        assert filter_params["fromBlock"] == "earliest"
        assert filter_params["toBlock"] == "latest"
        assert len(filter_params["topics"]) == 1

    @pytest.mark.asyncio
    async def test_decodes_logs(self, event_filter, mock_w3):
        mock_w3.eth.get_logs.return_value = [registered_log(MANAGER, 7)]

        events = await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])

        assert len(events) == 1
        event = events[0]
        assert event["event"] == RELAY_SERVER_REGISTERED
        assert event["args"]["relayManager"] == Web3.to_checksum_address(MANAGER)
        assert event["args"]["baseRelayFee"] == 1
        assert event["args"]["pctRelayFee"] == 10
        assert event["args"]["relayUrl"] == "https://relay.example"
        assert event["blockNumber"] == 7

    @pytest.mark.asyncio
    async def test_node_order_preserved(self, event_filter, mock_w3):
        """Results come back in node order, without sorting."""
        mock_w3.eth.get_logs.return_value = [
            registered_log(MANAGER, 9, url="https://b.example"),
            registered_log(MANAGER, 3, url="https://a.example"),
            registered_log(MANAGER, 9, url="https://b.example"),
        ]

        events = await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])

        assert [event["blockNumber"] for event in events] == [9, 3, 9]

    @pytest.mark.asyncio
    async def test_event_topics_computed_once_per_query(self, event_filter, mock_w3):
        """Decoding cost does not grow with the number of ABI events per log."""
        with patch("relay_interactor.events.event_abi_to_log_topic", wraps=event_abi_to_log_topic) as topic_of:
            mock_w3.eth.get_logs.return_value = [registered_log(MANAGER, 1)]
            await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])
            calls_for_one_log = topic_of.call_count

            topic_of.reset_mock()
            mock_w3.eth.get_logs.return_value = [registered_log(MANAGER, n) for n in range(1, 11)]
            events = await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])

        assert len(events) == 10
        assert topic_of.call_count == calls_for_one_log

    @pytest.mark.asyncio
    async def test_unmatched_log_topic(self, event_filter, mock_w3):
        log = registered_log(MANAGER, 1)
        log["topics"][0] = HexBytes(b"\xff" * 32)
        mock_w3.eth.get_logs.return_value = [log]

        with pytest.raises(UnknownEventError):
            await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])

    @pytest.mark.asyncio
    async def test_unknown_event_not_queried(self, event_filter, mock_w3):
        with pytest.raises(UnknownEventError):
            await event_filter.get_past_events_for_hub(["NoSuchEvent"])

        mock_w3.eth.get_logs.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, event_filter, mock_w3):
        mock_w3.eth.get_logs.side_effect = ConnectionError("node down")

        with pytest.raises(ConnectionError, match="node down"):
            await event_filter.get_past_events_for_hub([RELAY_SERVER_REGISTERED])
