"""
Wallet package - Key management for the device wallet.

Contains:
- AccountManager: create/import/unlock the single wallet identity
- KeystoreStorage: the one encrypted V3 keystore file, with a locked cache
- EncryptedKeystore: V3 keystore wrapper
- SecretStore, InMemorySecretStore, FileSecretStore: recovery phrase storage
- WalletError and its subclasses: typed failures
"""

from .crypto import (
    EncryptedKeystore,
    WalletInfo,
    checksum_address,
    generate_mnemonic,
    is_valid_mnemonic,
    parse_private_key,
    private_key_from_mnemonic,
    ETH_DERIVATION_PATH,
)
from .errors import (
    WalletError,
    AccountDoesNotExist,
    InvalidPath,
    InvalidKey,
    InvalidMnemonics,
    InvalidAddress,
    MalformedKeystore,
    DecryptionFailure,
    NetworkFailure,
    ConversionFailure,
    NotEnoughBalance,
    ContractFailure,
    UnexpectedResult,
)
from .keystore import KeystoreStorage, KEYSTORE_FILENAME
from .manager import AccountManager, MNEMONIC_SECRET_KEY
from .secret_store import SecretStore, InMemorySecretStore, FileSecretStore

__all__ = [
    # Crypto
    "EncryptedKeystore",
    "WalletInfo",
    "checksum_address",
    "generate_mnemonic",
    "is_valid_mnemonic",
    "parse_private_key",
    "private_key_from_mnemonic",
    "ETH_DERIVATION_PATH",
    # Errors
    "WalletError",
    "AccountDoesNotExist",
    "InvalidPath",
    "InvalidKey",
    "InvalidMnemonics",
    "InvalidAddress",
    "MalformedKeystore",
    "DecryptionFailure",
    "NetworkFailure",
    "ConversionFailure",
    "NotEnoughBalance",
    "ContractFailure",
    "UnexpectedResult",
    # Storage
    "KeystoreStorage",
    "KEYSTORE_FILENAME",
    "SecretStore",
    "InMemorySecretStore",
    "FileSecretStore",
    # Manager
    "AccountManager",
    "MNEMONIC_SECRET_KEY",
]
