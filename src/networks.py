"""
Networks - Chain configurations and the JSON-RPC chain client.

Supports Ethereum mainnet and the Sepolia testnet.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from wallet.errors import ContractFailure, InvalidAddress, NetworkFailure

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30  # seconds


# ============================================
# Network Configurations
# ============================================

@dataclass
class NetworkConfig:
    """Configuration for a blockchain network."""
    chain_id: int
    name: str
    display_name: str
    rpc_url: str
    explorer_url: str
    is_testnet: bool
    native_symbol: str
    native_decimals: int = 18


NETWORKS = {
    # Ethereum Mainnet
    1: NetworkConfig(
        chain_id=1,
        name="mainnet",
        display_name="Ethereum",
        rpc_url="https://ethereum-rpc.publicnode.com",
        explorer_url="https://etherscan.io",
        is_testnet=False,
        native_symbol="ETH",
    ),
    # Sepolia Testnet
    11155111: NetworkConfig(
        chain_id=11155111,
        name="sepolia",
        display_name="Sepolia",
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        explorer_url="https://sepolia.etherscan.io",
        is_testnet=True,
        native_symbol="ETH",
    ),
}

DEFAULT_NETWORK = 1


# ============================================
# ERC-20
# ============================================

# Minimal ERC-20 ABI for balances, metadata and transfers
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function"
    },
]

ERC20_TRANSFER_SIGNATURE = "transfer(address,uint256)"


def encode_erc20_transfer(to_address: str, amount: int) -> str:
    """ABI-encode transfer(to, amount) call data as a 0x hex string."""
    selector = function_signature_to_4byte_selector(ERC20_TRANSFER_SIGNATURE)
    arguments = abi_encode(["address", "uint256"], [to_checksum_address(to_address), amount])
    return "0x" + (selector + arguments).hex()


# ============================================
# Chain Client
# ============================================

class ChainClient(Protocol):
    """What the wallet needs from a chain node."""

    @property
    def chain_id(self) -> int:
        ...

    def get_balance(self, address: str) -> int:
        ...

    def call(self, contract_address: str, method: str, args: Sequence[Any] = ()) -> Any:
        ...

    def get_transaction_count(self, address: str) -> int:
        ...

    def gas_price(self) -> int:
        ...

    def estimate_gas(self, transaction: dict) -> int:
        ...

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        ...


class Web3ChainClient:
    """
    JSON-RPC chain client over HTTP.

    Transport failures and timeouts raise NetworkFailure; reverted or
    undecodable contract calls raise ContractFailure.
    """

    def __init__(self, network: NetworkConfig, rpc_url: Optional[str] = None,
                 timeout: float = DEFAULT_REQUEST_TIMEOUT):
        """
        Args:
            network: Network configuration
            rpc_url: Custom RPC URL, or None to use network default
            timeout: Per-request timeout in seconds
        """
        self.network = network
        effective_rpc = rpc_url if rpc_url else network.rpc_url
        self.w3 = Web3(Web3.HTTPProvider(effective_rpc, request_kwargs={"timeout": timeout}))

    @property
    def chain_id(self) -> int:
        return self.network.chain_id

    def get_balance(self, address: str) -> int:
        try:
            return self.w3.eth.get_balance(_checksum(address))
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"get_balance failed: {e}") from e

    def call(self, contract_address: str, method: str, args: Sequence[Any] = ()) -> Any:
        try:
            contract = self.w3.eth.contract(address=_checksum(contract_address), abi=ERC20_ABI)
            function = getattr(contract.functions, method)
        except (AttributeError, Web3Exception, ValueError) as e:
            raise ContractFailure(f"Cannot prepare {method} on {contract_address}") from e

        try:
            return function(*args).call()
        except (ContractLogicError, BadFunctionCallOutput) as e:
            raise ContractFailure(f"{method} failed on {contract_address}: {e}") from e
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"{method} call failed: {e}") from e

    def get_transaction_count(self, address: str) -> int:
        try:
            return self.w3.eth.get_transaction_count(_checksum(address), "pending")
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"get_transaction_count failed: {e}") from e

    def gas_price(self) -> int:
        try:
            return self.w3.eth.gas_price
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"gas_price failed: {e}") from e

    def estimate_gas(self, transaction: dict) -> int:
        try:
            return self.w3.eth.estimate_gas(transaction)
        except ContractLogicError as e:
            raise ContractFailure(f"Transaction would revert: {e}") from e
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"estimate_gas failed: {e}") from e

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        try:
            tx_hash = self.w3.eth.send_raw_transaction(raw_transaction)
        except (Web3Exception, OSError, ValueError) as e:
            raise NetworkFailure(f"send_raw_transaction failed: {e}") from e
        return Web3.to_hex(tx_hash)


# ============================================
# Utility Functions
# ============================================

def _checksum(address: str) -> str:
    try:
        return to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidAddress(f"Malformed address: {address}") from e


def get_network(chain_id: int) -> Optional[NetworkConfig]:
    """Get network config by chain ID."""
    return NETWORKS.get(chain_id)


def get_network_by_name(name: str) -> Optional[NetworkConfig]:
    """Get network config by name."""
    for network in NETWORKS.values():
        if network.name == name:
            return network
    return None


def format_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678"""
    if len(address) <= chars * 2 + 2:
        return address
    return f"{address[:chars+2]}...{address[-chars:]}"
