"""Tests for ContractUtility."""

import unittest
from unittest.mock import MagicMock, patch

from relay_interactor.registry import ContractRole
from relay_interactor.utils.contract_utility import ContractUtility

TEST_KEY = "0x" + "1" * 64


class TestContractUtility(unittest.TestCase):
    """Test cases for ContractUtility."""

    def test_requires_rpc_url(self):
        with self.assertRaises(ValueError) as ctx:
            ContractUtility("")
        self.assertIn("RPC URL is required", str(ctx.exception))

    def test_read_only_mode(self):
        """Without a private key no account is loaded."""
        util = ContractUtility("http://localhost:8545")

        self.assertIsNone(util.account)
        self.assertEqual(util.rpc_url, "http://localhost:8545")
        self.assertIsNotNone(util.w3)

    def test_http_provider(self):
        util = ContractUtility("http://localhost:8545")

        self.assertEqual(type(util.w3.provider).__name__, "AsyncHTTPProvider")

    @patch('relay_interactor.utils.contract_utility.Account')
    @patch('relay_interactor.utils.contract_utility.AsyncWeb3')
    def test_private_key_loads_account_only(self, mock_web3_class, mock_account_class):
        """The account is used for local signing; the connection is left untouched."""
        mock_w3 = MagicMock()
        mock_web3_class.return_value = mock_w3
        mock_account = MagicMock()
        mock_account_class.from_key.return_value = mock_account

        util = ContractUtility("http://localhost:8545", private_key=TEST_KEY)

        mock_account_class.from_key.assert_called_once_with(TEST_KEY)
        self.assertIs(util.account, mock_account)
        mock_w3.middleware_onion.add.assert_not_called()

    def test_real_signing_account(self):
        util = ContractUtility("http://localhost:8545", private_key=TEST_KEY)

        self.assertIsNotNone(util.account)
        self.assertEqual(util.account.key.hex().removeprefix("0x"), "1" * 64)

    def test_load_account_requires_key(self):
        util = ContractUtility("http://localhost:8545")

        with self.assertRaises(ValueError) as ctx:
            util._load_account("")
        self.assertIn("Private key is required", str(ctx.exception))

    def test_packaged_abis_load(self):
        """Every role's interface ABI is shipped with the package."""
        util = ContractUtility("http://localhost:8545")

        for role in ContractRole:
            abi = util.get_contract_abi(role.value)
            self.assertIsInstance(abi, list)
            self.assertTrue(abi, f"{role.value} ABI is empty")

    def test_relay_hub_abi_declares_relay_functions(self):
        util = ContractUtility("http://localhost:8545")

        names = {entry.get("name") for entry in util.get_contract_abi("IRelayHub")}

        for name in ("relayCall", "canRelay", "getHubOverhead", "RelayServerRegistered"):
            self.assertIn(name, names)

    def test_missing_abi(self):
        util = ContractUtility("http://localhost:8545")

        with self.assertRaises(FileNotFoundError):
            util.get_contract_abi("DoesNotExist")


if __name__ == '__main__':
    unittest.main()
