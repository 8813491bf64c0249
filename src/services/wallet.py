"""
EtherWallet - One explicitly constructed wallet with all of its services.

Usage:
    wallet = EtherWallet.from_settings(load_settings())
    wallet.account.generate_account("password")
    balance = wallet.balance.ether_balance()
    future = wallet.send_ether_async(to, "0.1", "password")
    tx_hash = future.result()
    wallet.shutdown()
"""

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Optional

from networks import DEFAULT_NETWORK, NETWORKS, ChainClient, Web3ChainClient
from utils import Settings, get_app_dir, get_keystore_dir, get_secrets_dir
from wallet.keystore import KeystoreStorage
from wallet.manager import AccountManager
from wallet.secret_store import FileSecretStore, SecretStore
from .balance import BalanceService
from .dispatch import WalletDispatcher
from .history import CoinGeckoClient, EtherscanClient
from .logging import configure_logging
from .transaction import TransactionService

logger = logging.getLogger(__name__)


class EtherWallet:
    """Account, balance, transaction and history services for one device wallet."""

    def __init__(self, account: AccountManager, chain: ChainClient,
                 history: Optional[EtherscanClient] = None,
                 prices: Optional[CoinGeckoClient] = None,
                 dispatcher: Optional[WalletDispatcher] = None):
        self.account = account
        self.chain = chain
        self.balance = BalanceService(account, chain)
        self.transactions = TransactionService(account, self.balance, chain)
        self.history = history or EtherscanClient()
        self.prices = prices or CoinGeckoClient()
        self.dispatcher = dispatcher or WalletDispatcher()

    @classmethod
    def from_settings(cls, settings: Settings, app_dir: Optional[Path] = None,
                      secret_store: Optional[SecretStore] = None,
                      deliver: Optional[Callable] = None) -> "EtherWallet":
        """Wire a wallet from settings, storing files under app_dir."""
        configure_logging(settings.log_level)
        app_dir = Path(app_dir) if app_dir else get_app_dir()

        network = NETWORKS.get(settings.chain_id)
        if network is None:
            logger.warning(f"Unknown chain {settings.chain_id}, using {DEFAULT_NETWORK}")
            network = NETWORKS[DEFAULT_NETWORK]

        account = AccountManager(
            KeystoreStorage(get_keystore_dir(app_dir)),
            secret_store or FileSecretStore(get_secrets_dir(app_dir)),
            kdf=settings.keystore_kdf,
            kdf_iterations=settings.keystore_kdf_iterations,
        )
        chain = Web3ChainClient(
            network,
            rpc_url=settings.rpc_url_for(network.chain_id),
            timeout=settings.request_timeout,
        )
        logger.info(f"Wallet on {network.display_name} (chain {network.chain_id})")

        return cls(
            account,
            chain,
            history=EtherscanClient(settings.etherscan_url, settings.etherscan_api_key,
                                    timeout=settings.request_timeout),
            prices=CoinGeckoClient(settings.coingecko_url, settings.coingecko_api_key,
                                   timeout=settings.request_timeout),
            dispatcher=WalletDispatcher(settings.max_workers, deliver=deliver),
        )

    # ============================================
    # Futures
    # ============================================

    def ether_balance_async(self) -> Future:
        return self.dispatcher.submit(self.balance.ether_balance)

    def token_balance_async(self, contract_address: str) -> Future:
        return self.dispatcher.submit(self.balance.token_balance, contract_address)

    def decimals_for_token_async(self, contract_address: str) -> Future:
        return self.dispatcher.submit(self.balance.decimals_for_token, contract_address)

    def symbol_for_token_async(self, contract_address: str) -> Future:
        return self.dispatcher.submit(self.balance.symbol_for_token, contract_address)

    def send_ether_async(self, to: str, amount: str, password: str,
                         gas_price: Optional[str] = None) -> Future:
        return self.dispatcher.submit(self.transactions.send_ether, to, amount, password, gas_price)

    def send_token_async(self, to: str, contract_address: str, amount: str, password: str,
                         decimals: int, gas_price: Optional[str] = None) -> Future:
        return self.dispatcher.submit(self.transactions.send_token, to, contract_address,
                                      amount, password, decimals, gas_price)

    def transaction_list_async(self, address: Optional[str] = None) -> Future:
        return self.dispatcher.submit(self._transaction_list, address)

    def eth_price_async(self, vs_currency: str = "usd") -> Future:
        return self.dispatcher.submit(self.prices.get_eth_price, vs_currency)

    # ============================================
    # Callbacks (result or None)
    # ============================================

    def ether_balance_with_callback(self, callback: Callable[[Optional[str]], Any]) -> Future:
        return self.dispatcher.call_with_callback(self.balance.ether_balance, callback)

    def token_balance_with_callback(self, contract_address: str,
                                    callback: Callable[[Optional[str]], Any]) -> Future:
        return self.dispatcher.call_with_callback(self.balance.token_balance, callback,
                                                  contract_address)

    def decimals_for_token_with_callback(self, contract_address: str,
                                         callback: Callable[[Optional[int]], Any]) -> Future:
        return self.dispatcher.call_with_callback(self.balance.decimals_for_token, callback,
                                                  contract_address)

    def symbol_for_token_with_callback(self, contract_address: str,
                                       callback: Callable[[Optional[str]], Any]) -> Future:
        return self.dispatcher.call_with_callback(self.balance.symbol_for_token, callback,
                                                  contract_address)

    def send_ether_with_callback(self, to: str, amount: str, password: str,
                                 callback: Callable[[Optional[str]], Any],
                                 gas_price: Optional[str] = None) -> Future:
        return self.dispatcher.call_with_callback(self.transactions.send_ether, callback,
                                                  to, amount, password, gas_price)

    def send_token_with_callback(self, to: str, contract_address: str, amount: str,
                                 password: str, decimals: int,
                                 callback: Callable[[Optional[str]], Any],
                                 gas_price: Optional[str] = None) -> Future:
        return self.dispatcher.call_with_callback(self.transactions.send_token, callback,
                                                  to, contract_address, amount, password,
                                                  decimals, gas_price)

    # ============================================
    # History
    # ============================================

    def _transaction_list(self, address: Optional[str] = None):
        return self.history.get_transaction_list(address or self.balance.wallet_address())

    def shutdown(self, wait: bool = True) -> None:
        self.dispatcher.shutdown(wait=wait)
