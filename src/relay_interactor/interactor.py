"""
Contract interactor.

Entry point used by relay servers and monitors: wires the contract registry,
relay-call validator, event topic filter and chain context over one
AsyncWeb3 connection, and exposes the node pass-through calls they need.
"""

import logging
from collections.abc import Iterable, Sequence

from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3
from web3.types import (
    BlockData,
    BlockIdentifier,
    EventData,
    FilterParams,
    LogReceipt,
    TxData,
    TxParams,
    TxReceipt,
    Wei,
)

from .chain_context import ChainContext
from .config import InteractorConfig
from .events import EventTopicFilter, topics_for_managers
from .models import ChainInfo, RelayRequest, SigningOptions, ValidationOutcome
from .registry import ContractRegistry
from .utils.contract_utility import ContractUtility
from .validation import RelayCallValidator

logger = logging.getLogger(__name__)


class ContractInteractor:
    """
    Contract-interaction primitives for the relay network.

    Delegates relay-call validation, event queries and chain identity to
    dedicated components; everything else is a thin call to the node.
    """

    def __init__(self, config: InteractorConfig, contract_util: ContractUtility | None = None) -> None:
        """
        Initialize the interactor.

        Args:
            config: Interactor configuration
            contract_util: Node connection and ABI loader (built from config if omitted)
        """
        self.config = config
        self.contract_util = contract_util or ContractUtility(
            rpc_url=config.rpc_url,
            private_key=config.private_key or "",
            request_timeout=config.request_timeout,
        )
        self.w3: AsyncWeb3 = self.contract_util.w3

        self.registry = ContractRegistry(self.w3, self.contract_util)
        self.chain = ChainContext()
        self.validator = RelayCallValidator(self.registry, config)
        self.event_filter = EventTopicFilter(self.w3, self.registry, config)

    @classmethod
    def from_env(cls) -> "ContractInteractor":
        """
        Create a ContractInteractor from environment variables.

        Raises:
            ValueError: If required environment variables are missing
        """
        config = InteractorConfig.from_env()
        config.log_config()
        return cls(config)

    async def init(self) -> ChainInfo:
        """Resolve chain identity; must be called once before the chain accessors."""
        return await self.chain.initialize(self.w3)

    def get_chain_id(self) -> int:
        return self.chain.chain_id

    def get_network_id(self) -> int:
        return self.chain.network_id

    def get_network_type(self) -> str:
        return self.chain.network_type

    def get_raw_tx_options(self) -> SigningOptions:
        """Signing options to use when creating raw transactions."""
        return self.chain.signing_options

    # Contract reads

    async def get_forwarder(self, recipient_address: str) -> str:
        recipient = self.registry.recipient(recipient_address)
        return await recipient.functions.getTrustedForwarder().call()

    async def get_sender_nonce(self, sender: str, forwarder_address: str) -> str:
        forwarder = self.registry.forwarder(forwarder_address)
        nonce = await forwarder.functions.getNonce(Web3.to_checksum_address(sender)).call()
        return str(nonce)

    async def validate_accept_relay_call(
        self,
        relay_request: RelayRequest,
        signature: bytes | str,
        approval_data: bytes | str,
    ) -> ValidationOutcome:
        return await self.validator.validate(relay_request, signature, approval_data)

    def encode_abi(
        self,
        relay_request: RelayRequest,
        signature: bytes | str,
        approval_data: bytes | str,
    ) -> HexStr:
        relay_hub = self.registry.relay_hub(self.config.relay_hub_address)
        return self.validator.encode_relay_call(relay_hub, relay_request, signature, approval_data)

    # Events

    def topics_for_managers(self, relay_managers: Iterable[str]) -> list[str]:
        return topics_for_managers(relay_managers)

    async def get_past_events_for_hub(
        self,
        event_names: Sequence[str],
        extra_topics: Sequence[str] = (),
        from_block: BlockIdentifier = "earliest",
        to_block: BlockIdentifier = "latest",
    ) -> list[EventData]:
        return await self.event_filter.get_past_events_for_hub(event_names, extra_topics, from_block, to_block)

    async def get_past_events_for_stake_manager(
        self,
        event_names: Sequence[str],
        extra_topics: Sequence[str] = (),
        from_block: BlockIdentifier = "earliest",
        to_block: BlockIdentifier = "latest",
    ) -> list[EventData]:
        return await self.event_filter.get_past_events_for_stake_manager(
            event_names, extra_topics, from_block, to_block
        )

    # Node pass-through

    async def get_past_logs(self, filter_params: FilterParams) -> list[LogReceipt]:
        return await self.w3.eth.get_logs(filter_params)

    async def get_balance(self, address: str) -> Wei:
        return await self.w3.eth.get_balance(Web3.to_checksum_address(address))

    async def get_block_number(self) -> int:
        return await self.w3.eth.block_number

    async def send_signed_transaction(self, raw_tx: bytes | str) -> TxReceipt:
        tx_hash = await self.w3.eth.send_raw_transaction(HexBytes(raw_tx))
        logger.info(f"Sent transaction {Web3.to_hex(tx_hash)}")
        return await self.w3.eth.wait_for_transaction_receipt(tx_hash)

    async def estimate_gas(self, tx: TxParams) -> int:
        return await self.w3.eth.estimate_gas(tx)

    async def get_gas_price(self) -> Wei:
        return await self.w3.eth.gas_price

    async def get_transaction_count(self, address: str, block_identifier: BlockIdentifier = "latest") -> int:
        return await self.w3.eth.get_transaction_count(Web3.to_checksum_address(address), block_identifier)

    async def get_transaction(self, transaction_hash: str) -> TxData:
        return await self.w3.eth.get_transaction(transaction_hash)

    async def get_block(self, block_identifier: BlockIdentifier) -> BlockData:
        return await self.w3.eth.get_block(block_identifier)

    async def get_code(self, address: str) -> bytes:
        return await self.w3.eth.get_code(Web3.to_checksum_address(address))

    def sign_transaction(self, tx: TxParams) -> bytes:
        """
        Sign a transaction with the configured local account.

        The chain context's signing options are applied first, so init() must
        have completed.

        Returns:
            Raw signed transaction bytes, ready for send_signed_transaction()
        """
        account = self.contract_util.account
        if account is None:
            raise ValueError("Private key is required for signing transactions")
        signed = account.sign_transaction(self.chain.signing_options.apply(tx))
        return bytes(signed.raw_transaction)
