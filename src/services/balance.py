"""
Balance Service - Read-only chain state for the device wallet.

No local caching: every query round-trips to the chain client.
"""

import logging

from networks import ChainClient
from models.amounts import ETHER_DECIMALS, BALANCE_DISPLAY_DECIMALS, format_units
from wallet.crypto import checksum_address
from wallet.errors import (
    AccountDoesNotExist,
    ContractFailure,
    NetworkFailure,
    UnexpectedResult,
)
from wallet.manager import AccountManager

logger = logging.getLogger(__name__)


class BalanceService:
    """Native balance, token balances and token metadata."""

    def __init__(self, accounts: AccountManager, chain: ChainClient):
        self.accounts = accounts
        self.chain = chain

    def wallet_address(self) -> str:
        """
        Checksummed address of the device wallet.

        Raises:
            AccountDoesNotExist: If there is no wallet
            InvalidAddress: If the stored address is malformed
        """
        address = self.accounts.address
        if address is None:
            raise AccountDoesNotExist()
        return checksum_address(address)

    def ether_balance_wei(self) -> int:
        """Raw native balance in wei."""
        return self.chain.get_balance(self.wallet_address())

    def ether_balance(self) -> str:
        """
        Native balance formatted to 8 decimal places (rounded down).

        Raises:
            AccountDoesNotExist, InvalidAddress, NetworkFailure
        """
        raw = self.ether_balance_wei()
        return format_units(raw, ETHER_DECIMALS, BALANCE_DISPLAY_DECIMALS)

    def token_balance_raw(self, contract_address: str) -> int:
        """Wallet balance of an ERC-20 token in base units."""
        contract = checksum_address(contract_address)
        owner = self.wallet_address()
        result = self.chain.call(contract, "balanceOf", (owner,))
        if not isinstance(result, int) or isinstance(result, bool):
            raise ContractFailure(f"balanceOf returned {type(result).__name__}")
        return result

    def token_balance(self, contract_address: str) -> str:
        """
        Wallet balance of an ERC-20 token as a base-unit integer string.

        Raises:
            InvalidAddress, AccountDoesNotExist, ContractFailure, NetworkFailure
        """
        return str(self.token_balance_raw(contract_address))

    def decimals_for_token(self, contract_address: str) -> int:
        """
        The token's decimals().

        Raises:
            InvalidAddress, NetworkFailure, UnexpectedResult
        """
        result = self._read(contract_address, "decimals")
        if not isinstance(result, int) or isinstance(result, bool):
            raise UnexpectedResult(f"decimals returned {result!r}")
        return result

    def symbol_for_token(self, contract_address: str) -> str:
        """
        The token's symbol(), which must be strictly alphanumeric.

        Raises:
            InvalidAddress, NetworkFailure, UnexpectedResult
        """
        result = self._read(contract_address, "symbol")
        if not isinstance(result, str):
            raise NetworkFailure(f"symbol returned {type(result).__name__}")
        if not result or not (result.isascii() and result.isalnum()):
            logger.warning(f"Rejected token symbol from {contract_address}: {result!r}")
            raise UnexpectedResult(f"Token symbol is not alphanumeric: {result!r}")
        return result

    def _read(self, contract_address: str, method: str):
        contract = checksum_address(contract_address)
        try:
            return self.chain.call(contract, method)
        except ContractFailure as e:
            raise NetworkFailure(e.message) from e
