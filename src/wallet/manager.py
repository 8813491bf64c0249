"""
Account Manager - The single wallet identity on this device.

Creates, imports and unlocks the wallet. Every import funnels through
import_private_key so there is one password-protected persistence path.
The recovery phrase lives only in the secret store.
"""

import logging
import threading
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .crypto import (
    DEFAULT_KEYSTORE_KDF,
    ETH_DERIVATION_PATH,
    MNEMONIC_STRENGTH,
    EncryptedKeystore,
    WalletInfo,
    create_wallet_info,
    generate_mnemonic,
    parse_private_key,
    private_key_from_mnemonic,
    wallet_info_from_mnemonic,
)
from .errors import WalletError
from .keystore import KeystoreStorage
from .secret_store import SecretStore

logger = logging.getLogger(__name__)

MNEMONIC_SECRET_KEY = "mnemonicsKeystoreKey"


class AccountManager:
    """
    Manages the device wallet identity.

    Usage:
        manager = AccountManager(KeystoreStorage(dir), InMemorySecretStore())
        manager.generate_account("password")
        manager.address            # 0x...
        manager.verify_password("password")
    """

    def __init__(self, storage: KeystoreStorage, secret_store: SecretStore,
                 kdf: str = DEFAULT_KEYSTORE_KDF, kdf_iterations: Optional[int] = None):
        """
        Args:
            storage: Keystore persistence
            secret_store: Where the recovery phrase is kept
            kdf: Keystore KDF ("scrypt" or "pbkdf2")
            kdf_iterations: KDF work factor, None for the library default
        """
        self.storage = storage
        self.secret_store = secret_store
        self.kdf = kdf
        self.kdf_iterations = kdf_iterations
        # Serializes keystore replace/decrypt and whole send pipelines
        self.lock = threading.RLock()

    # ============================================
    # Queries
    # ============================================

    @property
    def has_account(self) -> bool:
        try:
            self.storage.load()
        except WalletError:
            return False
        return True

    @property
    def address(self) -> Optional[str]:
        """Checksummed wallet address, or None if there is no usable wallet."""
        try:
            return self.storage.load().address
        except WalletError:
            return None

    @property
    def mnemonic(self) -> Optional[str]:
        """The stored recovery phrase (None for private-key imports)."""
        return self.secret_store.get(MNEMONIC_SECRET_KEY)

    @mnemonic.setter
    def mnemonic(self, value: Optional[str]) -> None:
        if value is None:
            self.secret_store.delete(MNEMONIC_SECRET_KEY)
        else:
            self.secret_store.set(MNEMONIC_SECRET_KEY, value)

    # ============================================
    # Unlocking
    # ============================================

    def private_key(self, password: str) -> str:
        """
        Decrypt the wallet key.

        Returns: Private key as lowercase hex without 0x prefix

        Raises:
            MalformedKeystore: If the keystore or its address cannot be read
            InvalidAddress: If the stored address is malformed
            DecryptionFailure: If the password is wrong
        """
        with self.lock:
            keystore = self.storage.load()
            keystore.address  # raises on missing/malformed address
            return keystore.decrypt(password).hex()

    def verify_password(self, password: str) -> bool:
        try:
            self.private_key(password)
        except WalletError:
            return False
        return True

    def account(self, password: str) -> LocalAccount:
        """Get an eth_account Account object for signing."""
        return Account.from_key(bytes.fromhex(self.private_key(password)))

    # ============================================
    # Creation & Import
    # ============================================

    def generate_account(self, password: str, strength: int = MNEMONIC_STRENGTH) -> str:
        """
        Create a new wallet from a fresh recovery phrase.

        Returns: The new wallet address

        Raises:
            UnexpectedResult: If phrase generation fails
        """
        phrase = generate_mnemonic(strength)
        return self.import_mnemonic(phrase, password)

    def import_private_key(self, private_key: str, password: str) -> str:
        """
        Replace the wallet with one holding the given private key.

        A private key has no recovery phrase, so any stored phrase is cleared.

        Raises:
            InvalidKey: If the key is malformed
            InvalidPath: If the keystore directory cannot be created
        """
        key_bytes = parse_private_key(private_key)
        keystore = EncryptedKeystore.create(
            key_bytes, password, kdf=self.kdf, iterations=self.kdf_iterations
        )
        with self.lock:
            self.storage.save(keystore)
            self.mnemonic = None
        logger.info(f"Imported wallet {keystore.address}")
        return keystore.address

    def import_mnemonic(self, phrase: str, password: str) -> str:
        """
        Replace the wallet with the first address of a recovery phrase.

        Raises:
            InvalidMnemonics: If the phrase cannot be validated or derived
        """
        key_bytes = private_key_from_mnemonic(phrase, ETH_DERIVATION_PATH)
        with self.lock:
            address = self.import_private_key(key_bytes.hex(), password)
            self.mnemonic = phrase
        return address

    def reset(self) -> None:
        """Delete the wallet: keystore file, cache and recovery phrase."""
        with self.lock:
            self.storage.delete()
            self.mnemonic = None
        logger.info("Wallet reset")

    # ============================================
    # Previews (nothing persisted)
    # ============================================

    @staticmethod
    def preview_mnemonic(phrase: str) -> WalletInfo:
        """Address and key a phrase would produce, without importing it."""
        return wallet_info_from_mnemonic(phrase)

    @staticmethod
    def preview_new_wallet() -> WalletInfo:
        """A freshly generated phrase and its address, without saving it."""
        return create_wallet_info()
