import tempfile
import threading
import unittest
from decimal import Decimal
from pathlib import Path

from networks import Web3ChainClient
from services.history import CoinGeckoClient, EtherscanClient
from services.wallet import EtherWallet
from utils import Settings
from wallet.errors import NotEnoughBalance
from wallet.secret_store import InMemorySecretStore
from wallet.tests.support import TEST_MNEMONIC, TEST_MNEMONIC_ADDRESS, make_account_manager

from .fakes import FakeChainClient
from .test_history import TX, RecordingFetch

RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TOKEN = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


class EtherWalletTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name)

        accounts = make_account_manager(self.dir)
        accounts.import_mnemonic(TEST_MNEMONIC, "pass")
        self.chain = FakeChainClient(
            balance_wei=10 ** 18,
            token_balances={TOKEN: 5_000_000},
            call_results={(TOKEN, "decimals"): 6, (TOKEN, "symbol"): "USDC"},
        )
        self.history_fetch = RecordingFetch({"status": "1", "message": "OK", "result": [TX]})
        self.wallet = EtherWallet(
            accounts,
            self.chain,
            history=EtherscanClient(fetch=self.history_fetch),
            prices=CoinGeckoClient(fetch=RecordingFetch({"ethereum": {"usd": 2000}})),
        )
        self.addCleanup(self.wallet.shutdown)

    def wait_for_callback(self, start):
        received = []
        done = threading.Event()

        def callback(value):
            received.append(value)
            done.set()

        start(callback)
        self.assertTrue(done.wait(5))
        return received[0]

    def test_queries_as_futures(self) -> None:
        self.assertEqual(self.wallet.ether_balance_async().result(5), "1.00000000")
        self.assertEqual(self.wallet.token_balance_async(TOKEN).result(5), "5000000")
        self.assertEqual(self.wallet.decimals_for_token_async(TOKEN).result(5), 6)
        self.assertEqual(self.wallet.symbol_for_token_async(TOKEN).result(5), "USDC")
        self.assertEqual(self.wallet.eth_price_async().result(5).price(), Decimal(2000))

    def test_transaction_list_defaults_to_wallet_address(self) -> None:
        records = self.wallet.transaction_list_async().result(5)

        self.assertEqual(len(records), 1)
        self.assertIn(f"address={TEST_MNEMONIC_ADDRESS}", self.history_fetch.requests[0]["url"])

    def test_send_futures(self) -> None:
        ether_hash = self.wallet.send_ether_async(RECIPIENT, "0.5", "pass").result(5)
        token_hash = self.wallet.send_token_async(RECIPIENT, TOKEN, "1.5", "pass", 6).result(5)

        self.assertEqual(len(self.chain.sent), 2)
        self.assertNotEqual(ether_hash, token_hash)
        self.assertEqual(self.chain.nonces, [0, 1])

    def test_send_failure_keeps_error_kind(self) -> None:
        future = self.wallet.send_ether_async(RECIPIENT, "5", "pass")
        with self.assertRaises(NotEnoughBalance):
            future.result(5)

    def test_callbacks(self) -> None:
        self.assertEqual(self.wait_for_callback(self.wallet.ether_balance_with_callback), "1.00000000")
        self.assertEqual(
            self.wait_for_callback(lambda cb: self.wallet.symbol_for_token_with_callback(TOKEN, cb)),
            "USDC",
        )
        tx_hash = self.wait_for_callback(
            lambda cb: self.wallet.send_token_with_callback(RECIPIENT, TOKEN, "1", "pass", 6, cb)
        )
        self.assertEqual(len(tx_hash), 64)

    def test_callbacks_receive_none_on_failure(self) -> None:
        with self.assertLogs("services.dispatch", level="WARNING"):
            result = self.wait_for_callback(
                lambda cb: self.wallet.send_ether_with_callback(RECIPIENT, "0.1", "wrong", cb)
            )
        self.assertIsNone(result)
        self.assertEqual(self.chain.sent, [])


class FromSettingsTests(unittest.TestCase):
    def test_wiring(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            settings = Settings(
                chain_id=11155111,
                custom_rpcs={"11155111": "http://127.0.0.1:8545"},
                etherscan_api_key="KEY",
                max_workers=2,
            )
            wallet = EtherWallet.from_settings(settings, app_dir=Path(tmp),
                                               secret_store=InMemorySecretStore())
            self.addCleanup(wallet.shutdown)

            self.assertIsInstance(wallet.chain, Web3ChainClient)
            self.assertEqual(wallet.chain.chain_id, 11155111)
            self.assertEqual(wallet.account.storage.keystore_dir, Path(tmp) / "keystore")
            self.assertEqual(wallet.history.api_key, "KEY")
            self.assertFalse(wallet.account.has_account)

    def test_unknown_chain_falls_back_to_default(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            wallet = EtherWallet.from_settings(Settings(chain_id=999), app_dir=Path(tmp),
                                               secret_store=InMemorySecretStore())
            self.addCleanup(wallet.shutdown)
            self.assertEqual(wallet.chain.chain_id, 1)


if __name__ == "__main__":
    unittest.main()
