"""
Services package - Chain-facing wallet services.

Contains:
- BalanceService: native/token balances and token metadata
- TransactionService: signed ether and ERC-20 transfers
- EtherscanClient, CoinGeckoClient: history and price sources
- WalletDispatcher: futures and callbacks over blocking calls
- EtherWallet: everything wired together
"""

from .balance import BalanceService
from .dispatch import WalletDispatcher
from .history import CoinGeckoClient, EtherscanClient
from .transaction import SendStage, TransactionService
from .wallet import EtherWallet

__all__ = [
    "BalanceService",
    "WalletDispatcher",
    "CoinGeckoClient",
    "EtherscanClient",
    "SendStage",
    "TransactionService",
    "EtherWallet",
]
