"""
Relay Interactor package.

Contract-interaction layer between a meta-transaction relay service and an
Ethereum-compatible node.
"""

from .chain_context import ChainContext
from .config import InteractorConfig
from .events import EventTopicFilter, address_to_topic, build_topics, topics_for_managers
from .exceptions import (
    InteractorError,
    InvalidAddressError,
    SimulationFailure,
    UninitializedError,
    UnknownEventError,
)
from .gas import calculate_transaction_max_possible_gas
from .interactor import ContractInteractor
from .models import GasData, GasLimits, RelayData, RelayRequest, ValidationOutcome
from .registry import ContractHandle, ContractRegistry, ContractRole
from .validation import RelayCallValidator

__all__ = [
    "ChainContext",
    "ContractHandle",
    "ContractInteractor",
    "ContractRegistry",
    "ContractRole",
    "EventTopicFilter",
    "GasData",
    "GasLimits",
    "InteractorConfig",
    "InteractorError",
    "InvalidAddressError",
    "RelayCallValidator",
    "RelayData",
    "RelayRequest",
    "SimulationFailure",
    "UninitializedError",
    "UnknownEventError",
    "ValidationOutcome",
    "address_to_topic",
    "build_topics",
    "calculate_transaction_max_possible_gas",
    "topics_for_managers",
]
__version__ = "0.1.0"
