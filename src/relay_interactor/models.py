"""
Shared data models for the relay interactor.

This module contains the immutable value types passed between the registry,
the gas accounting model, the relay-call validator and the chain context.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from hexbytes import HexBytes
from web3 import Web3
from web3.types import TxParams


@dataclass(frozen=True, slots=True)
class GasData:
    """Gas parameters of a relay request.

    Attributes:
        gas_limit: Gas limit for the inner call to the target
        gas_price: Gas price the relay worker will pay
        pct_relay_fee: Relay fee as a percentage of the charge
        base_relay_fee: Flat relay fee in wei
    """
    gas_limit: int
    gas_price: int
    pct_relay_fee: int = 0
    base_relay_fee: int = 0

    def to_abi(self) -> tuple[int, int, int, int]:
        return (self.gas_limit, self.gas_price, self.pct_relay_fee, self.base_relay_fee)


@dataclass(frozen=True, slots=True)
class RelayData:
    """Relay-side fields of a relay request.

    Attributes:
        sender_address: Original sender of the meta-transaction
        sender_nonce: Sender's forwarder nonce
        relay_worker: Worker address that will submit the transaction
        paymaster: Paymaster that pays for the call
    """
    sender_address: str
    sender_nonce: int
    relay_worker: str
    paymaster: str

    def to_abi(self) -> tuple[str, int, str, str]:
        return (
            Web3.to_checksum_address(self.sender_address),
            self.sender_nonce,
            Web3.to_checksum_address(self.relay_worker),
            Web3.to_checksum_address(self.paymaster),
        )


@dataclass(frozen=True, slots=True)
class RelayRequest:
    """A signed meta-transaction descriptor, produced by a client.

    Attributes:
        target: Recipient contract of the relayed call
        encoded_function: ABI-encoded call to the target
        gas_data: Gas limit, price and fees
        relay_data: Sender, nonce, worker and paymaster
    """
    target: str
    encoded_function: bytes | str
    gas_data: GasData
    relay_data: RelayData

    @property
    def paymaster(self) -> str:
        return self.relay_data.paymaster

    def to_abi(self) -> tuple:
        """Nested tuple matching the hub's RelayRequest struct."""
        return (
            Web3.to_checksum_address(self.target),
            bytes(HexBytes(self.encoded_function)),
            self.gas_data.to_abi(),
            self.relay_data.to_abi(),
        )


@dataclass(frozen=True, slots=True)
class GasLimits:
    """Gas ceilings declared by a paymaster through getGasLimits()."""
    acceptance_budget: int
    pre_relayed_call_gas_limit: int
    post_relayed_call_gas_limit: int
    calldata_size_limit: int = 0

    _ABI_FIELDS: ClassVar[tuple[str, ...]] = (
        "acceptanceBudget",
        "preRelayedCallGasLimit",
        "postRelayedCallGasLimit",
        "calldataSizeLimit",
    )

    @classmethod
    def from_abi(cls, value: Sequence[Any] | Mapping[str, Any]) -> "GasLimits":
        """
        Build GasLimits from a decoded getGasLimits() result.

        Args:
            value: Tuple in struct order, or a mapping keyed by struct field names

        Returns:
            GasLimits with integer fields
        """
        match value:
            case Mapping():
                fields = [value.get(name, 0) for name in cls._ABI_FIELDS]
            case str() | bytes():
                raise ValueError(f"Unexpected getGasLimits() result: {value!r}")
            case Sequence() if 3 <= len(value) <= 4:
                fields = list(value) + [0] * (4 - len(value))
            case _:
                raise ValueError(f"Unexpected getGasLimits() result: {value!r}")
        return cls(*(int(field) for field in fields))


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of simulating a relay call against the hub's acceptance check.

    Contract reverts, RPC failures and a rejection reported by the hub all end
    up in this one shape, so callers never need to tell them apart.

    The ``reverted`` flag tracks a protocol transition: acceptance decisions
    are moving into the paymaster and forwarder, after which the hub check no
    longer returns a value. It is kept as-is until then.

    Attributes:
        success: Whether the hub would accept the relay call
        return_value: Hub-reported value, or the failure diagnostic
        reverted: Whether the check itself failed instead of answering
    """
    success: bool
    return_value: str
    reverted: bool

    def __post_init__(self) -> None:
        if self.reverted and self.success:
            raise ValueError("A reverted validation cannot be successful")

    @classmethod
    def accepted(cls, success: bool, return_value: str | bytes) -> "ValidationOutcome":
        if isinstance(return_value, (bytes, bytearray)):
            return_value = Web3.to_hex(return_value)
        return cls(success=bool(success), return_value=return_value, reverted=False)

    @classmethod
    def failure(cls, diagnostic: str) -> "ValidationOutcome":
        return cls(success=False, return_value=diagnostic, reverted=True)


@dataclass(frozen=True, slots=True)
class SigningOptions:
    """Chain profile used when signing raw transactions locally.

    Only chain_id reaches the signer (apply() copies it into the transaction
    as EIP-155 chainId). chain, network_id and hardfork are informational:
    they report the profile the node was matched to, so the private -> mainnet
    substitution never changes how a transaction is signed.

    Attributes:
        chain: Named chain profile (informational)
        chain_id: EIP-155 chain id
        network_id: Network id reported by the node (informational)
        hardfork: Hardfork rule set (informational)
    """
    chain: str
    chain_id: int
    network_id: int
    hardfork: str = "istanbul"

    def apply(self, tx: TxParams) -> TxParams:
        """Return a copy of the transaction params bound to this chain id."""
        params = dict(tx)
        params["chainId"] = self.chain_id
        return params  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class ChainInfo:
    """Chain identity resolved once from the node."""
    chain_id: int
    network_id: int
    network_type: str
    signing_options: SigningOptions

    def __str__(self) -> str:
        return (
            f"ChainInfo(chain_id={self.chain_id}, "
            f"network_id={self.network_id}, "
            f"type={self.network_type}, "
            f"profile={self.signing_options.chain})"
        )
