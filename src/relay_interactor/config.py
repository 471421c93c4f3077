#!/usr/bin/env python3
"""Configuration management for the relay interactor.

This module provides a type-safe configuration dataclass with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate, and is read-only for the lifetime of the interactor.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from web3 import Web3

# Get logger for this module
logger = logging.getLogger(__name__)

# Gas charged per non-zero calldata byte (EIP-2028)
DEFAULT_GTX_DATA_NONZERO = 16


def _checksummed(value: str, label: str, env_var: str) -> str:
    if not value:
        raise ValueError(f"{label} address is required ({env_var})")
    if not Web3.is_address(value):
        raise ValueError(f"Invalid {label.lower()} address: {value}")
    return Web3.to_checksum_address(value)


@dataclass(frozen=True, slots=True)
class InteractorConfig:
    """Configuration for the relay interactor.

    Attributes:
        relay_hub_address: Checksummed address of the RelayHub contract
        stake_manager_address: Checksummed address of the StakeManager contract
        rpc_url: HTTP(S) RPC endpoint of the node
        gtxdatanonzero: Gas cost of one non-zero calldata byte
        request_timeout: Node request timeout in seconds
        private_key: Key for local signing (optional)
    """

    relay_hub_address: str
    stake_manager_address: str
    rpc_url: str = "http://localhost:8545"
    gtxdatanonzero: int = DEFAULT_GTX_DATA_NONZERO
    request_timeout: int = 30
    private_key: str | None = None

    def __post_init__(self) -> None:
        """Validate interactor configuration."""
        if not self.rpc_url:
            raise ValueError("RPC URL is required (RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )

        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(
            self, 'relay_hub_address',
            _checksummed(self.relay_hub_address, "RelayHub", "RELAY_HUB_ADDRESS")
        )
        object.__setattr__(
            self, 'stake_manager_address',
            _checksummed(self.stake_manager_address, "StakeManager", "STAKE_MANAGER_ADDRESS")
        )

        if self.gtxdatanonzero < 0:
            raise ValueError(f"Calldata gas cost must be non-negative, got {self.gtxdatanonzero}")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")

        if self.private_key:
            # 64 hex chars, optionally with 0x prefix
            key = self.private_key
            if key.startswith('0x'):
                key = key[2:]

            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )

            try:
                int(key, 16)
            except ValueError:
                raise ValueError(
                    "Invalid private key format. Must be hexadecimal"
                ) from None

    @classmethod
    def from_env(cls) -> "InteractorConfig":
        """Load configuration from environment variables.

        Returns:
            InteractorConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        relay_hub_address = os.environ.get("RELAY_HUB_ADDRESS", "")
        if not relay_hub_address:
            raise ValueError(
                "RELAY_HUB_ADDRESS environment variable is required. "
                "This should be the address of the deployed RelayHub contract."
            )

        stake_manager_address = os.environ.get("STAKE_MANAGER_ADDRESS", "")
        if not stake_manager_address:
            raise ValueError(
                "STAKE_MANAGER_ADDRESS environment variable is required. "
                "This should be the address of the deployed StakeManager contract."
            )

        try:
            gtxdatanonzero = int(os.environ.get("GTX_DATA_NONZERO", str(DEFAULT_GTX_DATA_NONZERO)))
            request_timeout = int(os.environ.get("REQUEST_TIMEOUT", "30"))
        except ValueError as e:
            raise ValueError(f"Invalid numeric configuration value: {e}") from None

        return cls(
            relay_hub_address=relay_hub_address,
            stake_manager_address=stake_manager_address,
            rpc_url=os.environ.get("RPC_URL", "http://localhost:8545"),
            gtxdatanonzero=gtxdatanonzero,
            request_timeout=request_timeout,
            private_key=os.environ.get("PRIVATE_KEY") or None,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Relay Interactor Configuration")
        logger.info("=" * 60)
        logger.info(f"  RPC URL: {self.rpc_url}")
        logger.info(f"  RelayHub: {self.relay_hub_address}")
        logger.info(f"  StakeManager: {self.stake_manager_address}")
        logger.info(f"  Calldata gas per non-zero byte: {self.gtxdatanonzero}")
        logger.info(f"  Request Timeout: {self.request_timeout} seconds")
        logger.info(f"  Private Key: {'[SET]' if self.private_key else '[NOT SET]'}")
        logger.info("=" * 60)
