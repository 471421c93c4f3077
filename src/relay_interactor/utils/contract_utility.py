import json
from importlib import resources
from typing import Any

from aiohttp import ClientTimeout
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3

CONTRACTS_PACKAGE = "relay_interactor"
CONTRACTS_DIR = "contracts"


class ContractUtility:
    """
    Node connection and interface ABI loader shared by the interactor components.

    Read-only unless a private key is given, in which case the local account
    is loaded and used to sign raw transactions.
    """

    def __init__(self, rpc_url: str, private_key: str = "", request_timeout: int = 30) -> None:
        """
        Connect to a node.

        Args:
            rpc_url: Node HTTP endpoint (required)
            private_key: Hex private key of the relay account; empty for read-only use
            request_timeout: Total timeout of a single node request, in seconds
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")

        self.rpc_url = rpc_url
        self.account: LocalAccount | None = None
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": ClientTimeout(total=request_timeout)}
        ))

        if private_key:
            self._load_account(private_key)

    def _load_account(self, private_key: str) -> None:
        if not private_key:
            raise ValueError("Private key is required for signing transactions")

        self.account = Account.from_key(private_key)

    def get_contract_abi(self, contract_name: str) -> list[dict[str, Any]]:
        """
        Load an interface ABI shipped in the package's contracts directory.

        Args:
            contract_name: Interface name, e.g. "IRelayHub"

        Returns:
            The "abi" entry of the contract JSON

        Raises:
            FileNotFoundError: If no such interface is packaged
        """
        abi_file = resources.files(CONTRACTS_PACKAGE).joinpath(CONTRACTS_DIR).joinpath(f"{contract_name}.json")

        with abi_file.open("r", encoding="utf-8") as fp:
            contract_json: dict[str, Any] = json.load(fp)

        return contract_json["abi"]
