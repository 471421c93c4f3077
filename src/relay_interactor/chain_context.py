"""
Chain identity resolved once from the node.

The context starts UNINITIALIZED and becomes READY after initialize(); every
read goes through one state guard, so nothing returns a stale or default
value before the node has been asked.
"""

import logging
from enum import Enum

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3

from .exceptions import UninitializedError
from .models import ChainInfo, SigningOptions

logger = logging.getLogger(__name__)

PRIVATE_NETWORK = "private"
DEFAULT_HARDFORK = "istanbul"

# network id -> (network type, genesis block hash)
KNOWN_NETWORKS: dict[int, tuple[str, str]] = {
    1: ("main", "0xd4e56740f876aef8c010b86a40d5f56745a118d0906a34e69aec8c0db1cb8fa3"),
    2: ("morden", "0x0cd786a2425d16f152c658316c423e6ce1181e15c3295826d7c9904cba9ce303"),
    3: ("ropsten", "0x41941023680923e0fe4d74a34bdac8141f2540e3ae90623718e47d66d1ca4a2d"),
    4: ("rinkeby", "0x6341fd3daf94b748c72ced5a5b26028f2474f5f00d824504e4fa37a75767e177"),
    5: ("goerli", "0xbf7e331f7f7c1dd2e05159666b3bf8bc7a8a3a9eb1d518969eab529dd9b88c1a"),
    42: ("kovan", "0xa3c565fc15c7478862d50ccd6561e3c06b24cc509bf388941c25ea985ce32cb9"),
}

# Detected network type -> chain profile used for signing options.
# Development nodes (ganache and the like) report "private", which has no
# signing profile of its own; they are signed for like mainnet, with their
# own chain id and network id.
CHAIN_PROFILE_SUBSTITUTIONS: dict[str, str] = {
    PRIVATE_NETWORK: "mainnet",
    "main": "mainnet",
}


class ContextState(Enum):
    """Lifecycle state of a ChainContext."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"


def detect_network_type(network_id: int, genesis_hash: str | bytes) -> str:
    """
    Name the network from its id and genesis block hash.

    Anything that is not a known public network is reported as "private".
    """
    known = KNOWN_NETWORKS.get(network_id)
    if known is None:
        return PRIVATE_NETWORK
    network_type, expected_hash = known
    if Web3.to_hex(HexBytes(genesis_hash)).lower() != expected_hash:
        return PRIVATE_NETWORK
    return network_type


def derive_signing_options(
    chain_id: int,
    network_id: int,
    network_type: str,
    hardfork: str = DEFAULT_HARDFORK,
) -> SigningOptions:
    """Signing options for a chain, substituting profiles per CHAIN_PROFILE_SUBSTITUTIONS."""
    chain = CHAIN_PROFILE_SUBSTITUTIONS.get(network_type, network_type)
    return SigningOptions(chain=chain, chain_id=chain_id, network_id=network_id, hardfork=hardfork)


class ChainContext:
    """
    Chain id, network id, network type and signing options of the node.

    initialize() must be called exactly once before any accessor; calling it
    again re-fetches and overwrites. After initialization the context is
    read-only and safe for concurrent readers.
    """

    def __init__(self) -> None:
        self._state = ContextState.UNINITIALIZED
        self._info: ChainInfo | None = None

    @property
    def state(self) -> ContextState:
        return self._state

    async def initialize(self, w3: AsyncWeb3) -> ChainInfo:
        """
        Fetch chain identity from the node.

        Args:
            w3: AsyncWeb3 instance connected to the node

        Returns:
            The resolved ChainInfo

        Raises:
            Whatever the node transport raises; the context stays in its
            previous state on failure.
        """
        chain_id = int(await w3.eth.chain_id)
        network_id = int(await w3.net.version)
        genesis = await w3.eth.get_block(0)
        network_type = detect_network_type(network_id, genesis["hash"])
        logger.info(f"== chain = {network_type}")

        info = ChainInfo(
            chain_id=chain_id,
            network_id=network_id,
            network_type=network_type,
            signing_options=derive_signing_options(chain_id, network_id, network_type),
        )
        self._info = info
        self._state = ContextState.READY
        logger.info(f"Chain context initialized: {info}")
        return info

    def _require_ready(self, attribute: str) -> ChainInfo:
        if self._state is not ContextState.READY or self._info is None:
            raise UninitializedError(attribute)
        return self._info

    @property
    def info(self) -> ChainInfo:
        return self._require_ready("chain info")

    @property
    def chain_id(self) -> int:
        return self._require_ready("chain id").chain_id

    @property
    def network_id(self) -> int:
        return self._require_ready("network id").network_id

    @property
    def network_type(self) -> str:
        return self._require_ready("network type").network_type

    @property
    def signing_options(self) -> SigningOptions:
        return self._require_ready("signing options").signing_options
