"""
Contract registry for relay-protocol roles.

Resolves a (role, address) pair into a contract handle bound to the role's
fixed interface. Resolution never touches the network.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract

from .exceptions import InvalidAddressError
from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)


class ContractRole(Enum):
    """Contract roles; each value names the interface ABI bound to the role."""
    PAYMASTER = "IPaymaster"
    RELAY_HUB = "IRelayHub"
    FORWARDER = "ITrustedForwarder"
    STAKE_MANAGER = "IStakeManager"
    RECIPIENT = "IRelayRecipient"


@dataclass(frozen=True, slots=True)
class ContractHandle:
    """A contract bound to one role's ABI at one address."""
    role: ContractRole
    address: str
    contract: AsyncContract

    @property
    def abi(self) -> list[dict[str, Any]]:
        return self.contract.abi

    @property
    def functions(self) -> Any:
        return self.contract.functions

    @property
    def events(self) -> Any:
        return self.contract.events

    def __str__(self) -> str:
        return f"{self.role.value}({self.address})"


class ContractRegistry:
    """
    Creates contract handles on demand.

    Handles are memoized per (role, checksummed address). The binding of an
    ABI to an address never changes, so the cache needs no invalidation.
    """

    def __init__(self, w3: AsyncWeb3, contract_util: ContractUtility) -> None:
        """
        Initialize the registry.

        Args:
            w3: AsyncWeb3 instance contract handles are bound to
            contract_util: Utility used to load the role ABIs
        """
        self.w3 = w3
        self._abis: dict[ContractRole, list[dict[str, Any]]] = {
            role: contract_util.get_contract_abi(role.value) for role in ContractRole
        }
        self._handles: dict[tuple[ContractRole, str], ContractHandle] = {}

    def abi_for(self, role: ContractRole) -> list[dict[str, Any]]:
        return self._abis[role]

    def resolve(self, role: ContractRole, address: str) -> ContractHandle:
        """
        Resolve a role and address into a contract handle.

        Args:
            role: Contract role
            address: Account address of the contract

        Returns:
            ContractHandle bound to the role's ABI

        Raises:
            InvalidAddressError: If the address is not a well-formed account address
        """
        if not isinstance(address, str) or not Web3.is_address(address):
            raise InvalidAddressError(address)

        checksummed = Web3.to_checksum_address(address)
        key = (role, checksummed)
        handle = self._handles.get(key)
        if handle is None:
            contract = self.w3.eth.contract(address=checksummed, abi=self._abis[role])
            handle = ContractHandle(role=role, address=checksummed, contract=contract)
            self._handles[key] = handle
            logger.debug(f"Bound {handle}")
        return handle

    def paymaster(self, address: str) -> ContractHandle:
        return self.resolve(ContractRole.PAYMASTER, address)

    def relay_hub(self, address: str) -> ContractHandle:
        return self.resolve(ContractRole.RELAY_HUB, address)

    def forwarder(self, address: str) -> ContractHandle:
        return self.resolve(ContractRole.FORWARDER, address)

    def stake_manager(self, address: str) -> ContractHandle:
        return self.resolve(ContractRole.STAKE_MANAGER, address)

    def recipient(self, address: str) -> ContractHandle:
        return self.resolve(ContractRole.RECIPIENT, address)
