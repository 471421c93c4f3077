"""
Relay-call validation.

Simulates a relay call against the hub's acceptance check before a relay
worker spends gas on it. Every failure is returned as a ValidationOutcome
value so relay-decision code can branch on it without exception handling.
"""

import asyncio
import logging
from typing import Any

from eth_typing import HexStr
from hexbytes import HexBytes

from .config import InteractorConfig
from .exceptions import SimulationFailure
from .gas import calculate_transaction_max_possible_gas, calldata_size_of
from .models import GasLimits, RelayRequest, ValidationOutcome
from .registry import ContractHandle, ContractRegistry

logger = logging.getLogger(__name__)


class RelayCallValidator:
    """Pre-validates relay requests with a read-only canRelay() call."""

    def __init__(self, registry: ContractRegistry, config: InteractorConfig) -> None:
        """
        Initialize the validator.

        Args:
            registry: Contract registry for paymaster and hub handles
            config: Interactor configuration (hub address, calldata gas cost)
        """
        self.registry = registry
        self.config = config

    def encode_relay_call(
        self,
        relay_hub: ContractHandle,
        relay_request: RelayRequest,
        signature: bytes | str,
        approval_data: bytes | str,
    ) -> HexStr:
        """ABI-encode relayCall(request, signature, approvalData) against the hub."""
        return relay_hub.contract.encode_abi(
            "relayCall",
            args=[relay_request.to_abi(), _as_bytes(signature), _as_bytes(approval_data)],
        )

    async def validate(
        self,
        relay_request: RelayRequest,
        signature: bytes | str,
        approval_data: bytes | str,
    ) -> ValidationOutcome:
        """
        Simulate a relay call and report whether the hub would accept it.

        Never raises: encoding errors, node failures, reverts and a rejection
        reported by the hub all come back as a ValidationOutcome.

        Args:
            relay_request: The relay request to validate
            signature: Sender's signature over the request
            approval_data: Paymaster approval data

        Returns:
            ValidationOutcome with the hub's own flags, or a reverted outcome
            whose return value describes the failure
        """
        try:
            return await self._simulate(relay_request, signature, approval_data)
        except SimulationFailure as e:
            logger.warning(f"Relay call validation failed: {e}")
            return ValidationOutcome.failure(str(e))
        except Exception as e:
            failure = SimulationFailure("validation", e)
            logger.error(f"Unexpected error validating relay call: {failure}", exc_info=True)
            return ValidationOutcome.failure(str(failure))

    async def _simulate(
        self,
        relay_request: RelayRequest,
        signature: bytes | str,
        approval_data: bytes | str,
    ) -> ValidationOutcome:
        try:
            paymaster = self.registry.paymaster(relay_request.paymaster)
            relay_hub = self.registry.relay_hub(self.config.relay_hub_address)
        except Exception as e:
            raise SimulationFailure("contract resolution", e) from e

        try:
            calldata_size = calldata_size_of(
                self.encode_relay_call(relay_hub, relay_request, signature, approval_data)
            )
        except Exception as e:
            raise SimulationFailure("relayCall encoding", e) from e

        try:
            raw_limits, hub_overhead = await asyncio.gather(
                paymaster.functions.getGasLimits().call(),
                relay_hub.functions.getHubOverhead().call(),
            )
            gas_limits = GasLimits.from_abi(raw_limits)
        except Exception as e:
            raise SimulationFailure("gas limits query", e) from e

        max_possible_gas = calculate_transaction_max_possible_gas(
            gas_limits=gas_limits,
            hub_overhead=int(hub_overhead),
            relay_call_gas_limit=relay_request.gas_data.gas_limit,
            calldata_size=calldata_size,
            gtxdatanonzero=self.config.gtxdatanonzero,
        )
        logger.debug(
            f"canRelay for paymaster {paymaster.address}: {max_possible_gas=} "
            f"{calldata_size=} acceptance_budget={gas_limits.acceptance_budget}"
        )

        try:
            result = await relay_hub.functions.canRelay(
                relay_request.to_abi(),
                max_possible_gas,
                gas_limits.acceptance_budget,
                _as_bytes(signature),
                _as_bytes(approval_data),
            ).call()
            success, return_value = _unpack_can_relay(result)
        except Exception as e:
            raise SimulationFailure("canRelay", e) from e

        return ValidationOutcome.accepted(success, return_value)


def _as_bytes(value: bytes | str) -> bytes:
    return bytes(HexBytes(value))


def _unpack_can_relay(result: Any) -> tuple[bool, Any]:
    match result:
        case {"success": success, "returnValue": return_value}:
            return bool(success), return_value
        case [success, return_value]:
            return bool(success), return_value
        case _:
            raise ValueError(f"Malformed canRelay() result: {result!r}")
