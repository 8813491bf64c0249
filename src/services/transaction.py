"""
Transaction Service - Validate, build, sign and broadcast transfers.

Each send walks the same stages:

    VALIDATE -> CHECK_BALANCE -> BUILD -> SIGN_AND_SUBMIT -> DONE

The whole pipeline for one send runs under the account manager's lock, so
overlapping sends on the same wallet are queued and never race on the
keystore cache or on nonce assignment.
"""

import logging
from enum import Enum
from typing import Optional

from eth_utils import remove_0x_prefix

from networks import ChainClient, encode_erc20_transfer
from models.amounts import ETHER_DECIMALS, GWEI_DECIMALS, parse_amount, to_base_units
from wallet.crypto import checksum_address
from wallet.errors import ContractFailure, ConversionFailure, NotEnoughBalance, WalletError
from wallet.manager import AccountManager
from .balance import BalanceService

logger = logging.getLogger(__name__)


class SendStage(Enum):
    VALIDATE = "validate"
    CHECK_BALANCE = "check_balance"
    BUILD = "build"
    SIGN_AND_SUBMIT = "sign_and_submit"
    DONE = "done"


class TransactionService:
    """Native-currency and ERC-20 transfers from the device wallet."""

    def __init__(self, accounts: AccountManager, balances: BalanceService, chain: ChainClient):
        self.accounts = accounts
        self.balances = balances
        self.chain = chain

    # ============================================
    # Native currency
    # ============================================

    def send_ether(self, to: str, amount: str, password: str,
                   gas_price: Optional[str] = None) -> str:
        """
        Send ether to an address.

        Args:
            to: Recipient address
            amount: Decimal string in ether ("0.25")
            password: Keystore password
            gas_price: Gas price in gwei, or None to use the node's price

        Returns:
            Transaction hash as hex without 0x prefix

        Raises:
            InvalidAddress, MalformedKeystore, DecryptionFailure,
            ConversionFailure, NotEnoughBalance, ContractFailure, NetworkFailure
        """
        stage = SendStage.VALIDATE
        try:
            to_address = checksum_address(to)
            with self.accounts.lock:
                from_address = self.accounts.storage.load().address

                stage = self._advance(SendStage.CHECK_BALANCE, from_address)
                balance = parse_amount(self.balances.ether_balance())
                requested = parse_amount(amount)
                if balance < requested:
                    raise NotEnoughBalance()

                stage = self._advance(SendStage.BUILD, from_address)
                transaction = {
                    "from": from_address,
                    "to": to_address,
                    "value": to_base_units(amount, ETHER_DECIMALS),
                    "data": "0x",
                }

                stage = self._advance(SendStage.SIGN_AND_SUBMIT, from_address)
                tx_hash = self._sign_and_submit(transaction, password, gas_price)
        except WalletError as e:
            logger.warning(f"Ether transfer failed at {stage.value}: {e.kind}")
            raise

        self._advance(SendStage.DONE, from_address)
        logger.info(f"Sent ether from {from_address} to {to_address}: {tx_hash}")
        return tx_hash

    # ============================================
    # ERC-20 tokens
    # ============================================

    def send_token(self, to: str, contract_address: str, amount: str, password: str,
                   decimals: int, gas_price: Optional[str] = None) -> str:
        """
        Send ERC-20 tokens through the contract's transfer(to, amount).

        Args:
            to: Recipient address
            contract_address: Token contract
            amount: Decimal string in token units ("1.5")
            password: Keystore password
            decimals: Token decimals used to scale amount
            gas_price: Gas price in gwei, or None to use the node's price

        Returns:
            Transaction hash as hex without 0x prefix
        """
        stage = SendStage.VALIDATE
        try:
            token = checksum_address(contract_address)
            to_address = checksum_address(to)
            if not isinstance(decimals, int) or decimals < 0:
                raise ConversionFailure(f"Invalid token decimals: {decimals!r}")
            units = to_base_units(amount, decimals)

            with self.accounts.lock:
                from_address = self.accounts.storage.load().address

                stage = self._advance(SendStage.CHECK_BALANCE, from_address)
                if self.balances.token_balance_raw(token) < units:
                    raise NotEnoughBalance()

                stage = self._advance(SendStage.BUILD, from_address)
                transaction = {
                    "from": from_address,
                    "to": token,
                    "value": 0,
                    "data": encode_erc20_transfer(to_address, units),
                }

                stage = self._advance(SendStage.SIGN_AND_SUBMIT, from_address)
                tx_hash = self._sign_and_submit(transaction, password, gas_price)
        except WalletError as e:
            logger.warning(f"Token transfer failed at {stage.value}: {e.kind}")
            raise

        self._advance(SendStage.DONE, from_address)
        logger.info(f"Sent token {token} from {from_address} to {to_address}: {tx_hash}")
        return tx_hash

    # ============================================
    # Signing & submission
    # ============================================

    def _sign_and_submit(self, transaction: dict, password: str,
                         gas_price: Optional[str]) -> str:
        account = self.accounts.account(password)
        filled = self._fill(transaction, gas_price)

        try:
            signed = account.sign_transaction(filled)
        except (TypeError, ValueError) as e:
            raise ContractFailure(f"Could not sign transaction: {e}") from e

        tx_hash = self.chain.send_raw_transaction(signed.raw_transaction)
        return remove_0x_prefix(tx_hash).lower()

    def _fill(self, transaction: dict, gas_price: Optional[str]) -> dict:
        """Add chain id, nonce, gas price and gas limit."""
        filled = dict(transaction)
        filled["chainId"] = self.chain.chain_id
        filled["nonce"] = self.chain.get_transaction_count(transaction["from"])
        if gas_price is not None:
            filled["gasPrice"] = to_base_units(gas_price, GWEI_DECIMALS)
        else:
            filled["gasPrice"] = self.chain.gas_price()
        filled["gas"] = self.chain.estimate_gas({
            "from": transaction["from"],
            "to": transaction["to"],
            "value": transaction["value"],
            "data": transaction["data"],
        })
        return filled

    @staticmethod
    def _advance(stage: SendStage, from_address: str) -> SendStage:
        logger.debug(f"Transfer from {from_address}: {stage.value}")
        return stage
