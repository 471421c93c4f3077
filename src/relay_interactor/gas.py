"""
Gas accounting for relayed calls.

The bound computed here must match the hub's on-chain charging rule exactly:
underestimating gets the relay call rejected, overestimating ties up relay
capital.
"""

from hexbytes import HexBytes

from .models import GasLimits


def calldata_size_of(encoded_call: bytes | str) -> int:
    """
    Byte length of an ABI-encoded call.

    Args:
        encoded_call: Encoded relayCall(request, signature, approvalData) as bytes or 0x-hex

    Returns:
        Number of encoded bytes, excluding any 0x prefix
    """
    return len(HexBytes(encoded_call))


def calculate_transaction_max_possible_gas(
    gas_limits: GasLimits,
    hub_overhead: int,
    relay_call_gas_limit: int,
    calldata_size: int,
    gtxdatanonzero: int,
) -> int:
    """
    Maximum gas a relayed transaction may consume.

    Args:
        gas_limits: Paymaster-declared limits
        hub_overhead: Hub's fixed per-call overhead
        relay_call_gas_limit: Gas limit of the inner call (relay request gasData)
        calldata_size: Byte length of the full relayCall encoding
        gtxdatanonzero: Gas per non-zero calldata byte

    Returns:
        hub overhead + inner gas limit + pre/post hook limits + calldata gas
    """
    terms = {
        "hub_overhead": hub_overhead,
        "relay_call_gas_limit": relay_call_gas_limit,
        "pre_relayed_call_gas_limit": gas_limits.pre_relayed_call_gas_limit,
        "post_relayed_call_gas_limit": gas_limits.post_relayed_call_gas_limit,
        "calldata_size": calldata_size,
        "gtxdatanonzero": gtxdatanonzero,
    }
    for name, value in terms.items():
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")

    return (
        hub_overhead
        + relay_call_gas_limit
        + gas_limits.pre_relayed_call_gas_limit
        + gas_limits.post_relayed_call_gas_limit
        + calldata_size * gtxdatanonzero
    )
