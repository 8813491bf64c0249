"""
Wallet Crypto - Key material handling.

- BIP-39 recovery phrases (128-bit entropy, English wordlist)
- BIP-44 derivation at a fixed Ethereum path
- V3 keystore (scrypt/pbkdf2 + AES-128-CTR) for the on-disk private key
- Argon2id + AES-256-GCM for small secrets kept by the secret store

Private keys never exist unencrypted on disk.
"""

import json
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Cryptography
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from argon2.low_level import hash_secret_raw, Type

# Ethereum
from mnemonic import Mnemonic
from eth_account import Account
from eth_account.hdaccount import seed_from_mnemonic, key_from_seed
from eth_keys.constants import SECPK1_N
from eth_utils import is_address, to_checksum_address
from eth_utils.exceptions import ValidationError

from .errors import (
    DecryptionFailure,
    InvalidAddress,
    InvalidKey,
    InvalidMnemonics,
    MalformedKeystore,
    UnexpectedResult,
)

# Enable HD wallet features
Account.enable_unaudited_hdwallet_features()


# ============================================
# Security Constants
# ============================================

# Argon2id parameters (OWASP recommendations for high-security)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # 64 MB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32  # 256 bits for AES-256

# AES-GCM constants
AES_IV_SIZE = 12  # 96 bits (recommended for GCM)
AES_TAG_SIZE = 16

# BIP-44 path of the first Ethereum address
ETH_DERIVATION_PATH = "m/44'/60'/0'/0/0"

# 128 bits of entropy -> 12 words
MNEMONIC_STRENGTH = 128
MNEMONIC_LANGUAGE = "english"

# V3 keystore defaults
DEFAULT_KEYSTORE_KDF = "scrypt"
KEYSTORE_VERSION = 3

PRIVATE_KEY_SIZE = 32

# Secure file permissions (Unix only)
SECURE_FILE_MODE = 0o600  # Owner read/write only


def set_secure_permissions(filepath: Path) -> None:
    """
    Set restrictive file permissions on Unix systems.

    Sets file to mode 0600 (owner read/write only) to protect wallet data.
    No-op on Windows (NTFS uses ACLs, not Unix permissions).
    """
    if os.name == 'posix':
        try:
            os.chmod(filepath, SECURE_FILE_MODE)
        except OSError:
            # Best effort - don't fail save operation if chmod fails
            pass


# ============================================
# Secret Encryption (secret store)
# ============================================

def derive_key(password: str, salt: bytes,
               time_cost: int = ARGON2_TIME_COST,
               memory_cost: int = ARGON2_MEMORY_COST,
               parallelism: int = ARGON2_PARALLELISM) -> bytes:
    """
    Derive an encryption key from password using Argon2id.

    Argon2id is memory-hard, making brute-force attacks expensive.
    """
    return hash_secret_raw(
        secret=password.encode('utf-8'),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID
    )


def encrypt_secret(plaintext: str, key: bytes) -> dict:
    """
    Encrypt a secret with an already-derived AES-256 key.

    Returns: {"ciphertext", "iv", "tag"} as hex strings
    """
    iv = secrets.token_bytes(AES_IV_SIZE)
    ciphertext_and_tag = AESGCM(key).encrypt(iv, plaintext.encode('utf-8'), None)

    return {
        "ciphertext": ciphertext_and_tag[:-AES_TAG_SIZE].hex(),
        "iv": iv.hex(),
        "tag": ciphertext_and_tag[-AES_TAG_SIZE:].hex(),
    }


def decrypt_secret(entry: dict, key: bytes) -> str:
    """
    Decrypt a secret produced by encrypt_secret.

    Raises: InvalidTag if the key is wrong or data is tampered.
    """
    ciphertext_and_tag = bytes.fromhex(entry["ciphertext"]) + bytes.fromhex(entry["tag"])
    plaintext = AESGCM(key).decrypt(bytes.fromhex(entry["iv"]), ciphertext_and_tag, None)
    return plaintext.decode('utf-8')


# ============================================
# Recovery Phrases & Private Keys
# ============================================

def generate_mnemonic(strength: int = MNEMONIC_STRENGTH) -> str:
    """Generate a fresh BIP-39 recovery phrase."""
    try:
        phrase = Mnemonic(MNEMONIC_LANGUAGE).generate(strength=strength)
    except ValueError as e:
        raise UnexpectedResult(f"Could not generate recovery phrase: {e}") from e
    if not phrase:
        raise UnexpectedResult("Could not generate recovery phrase")
    return phrase


def is_valid_mnemonic(phrase: str) -> bool:
    """Check a phrase against the English wordlist and its checksum."""
    if not phrase or not phrase.strip():
        return False
    return Mnemonic(MNEMONIC_LANGUAGE).check(" ".join(phrase.split()))


def private_key_from_mnemonic(phrase: str, path: str = ETH_DERIVATION_PATH) -> bytes:
    """
    Derive the private key at `path` from a recovery phrase.

    Raises:
        InvalidMnemonics: If the phrase fails validation or derivation
    """
    if not is_valid_mnemonic(phrase):
        raise InvalidMnemonics()

    try:
        seed = seed_from_mnemonic(" ".join(phrase.split()), passphrase="")
        return key_from_seed(seed, path)
    except (ValueError, ValidationError) as e:
        raise InvalidMnemonics(str(e)) from e


def parse_private_key(private_key: str) -> bytes:
    """
    Parse a hex private key (with or without 0x prefix).

    Raises:
        InvalidKey: If the value is not 32 bytes of hex inside the curve order
    """
    pkey = (private_key or "").strip()
    if pkey.startswith("0x") or pkey.startswith("0X"):
        pkey = pkey[2:]

    try:
        pkey_bytes = bytes.fromhex(pkey)
    except ValueError as e:
        raise InvalidKey("Private key is not hex") from e

    if len(pkey_bytes) != PRIVATE_KEY_SIZE:
        raise InvalidKey(f"Private key must be {PRIVATE_KEY_SIZE} bytes")

    if not 0 < int.from_bytes(pkey_bytes, "big") < SECPK1_N:
        raise InvalidKey("Private key is outside the curve order")

    try:
        Account.from_key(pkey_bytes)  # Validate
    except (ValueError, ValidationError) as e:
        raise InvalidKey(str(e)) from e

    return pkey_bytes


def checksum_address(address: str) -> str:
    """
    Normalize an address to its checksummed form.

    Raises:
        InvalidAddress: If the string is not a 20-byte hex address
    """
    if not isinstance(address, str):
        raise InvalidAddress()
    candidate = address.strip()
    if candidate.startswith("0x") or candidate.startswith("0X"):
        candidate = "0x" + candidate[2:]
    else:
        candidate = "0x" + candidate
    if not is_address(candidate):
        raise InvalidAddress(f"Malformed address: {address}")
    return to_checksum_address(candidate)


# ============================================
# V3 Keystore
# ============================================

class EncryptedKeystore:
    """
    Password-protected V3 keystore holding a single private key.

    Usage:
        keystore = EncryptedKeystore.create(private_key, "password")
        keystore.address            # 0x... checksummed
        keystore.decrypt("password")  # raw key bytes
        keystore.to_dict()          # JSON-ready keystore parameters
    """

    def __init__(self, params: dict):
        """Wrap already-encrypted keystore parameters (use create() or from_dict())."""
        self._params = params

    @classmethod
    def create(cls, private_key: bytes, password: str,
               kdf: str = DEFAULT_KEYSTORE_KDF,
               iterations: Optional[int] = None) -> 'EncryptedKeystore':
        """
        Encrypt a private key into a new keystore.

        Args:
            private_key: Raw 32-byte key
            password: Password protecting the keystore
            kdf: "scrypt" or "pbkdf2"
            iterations: KDF work factor (None for the library default)
        """
        try:
            params = Account.encrypt(private_key, password, kdf=kdf, iterations=iterations)
        except (ValueError, TypeError) as e:
            raise MalformedKeystore(f"Could not build keystore: {e}") from e
        return cls(params)

    @classmethod
    def from_dict(cls, data: dict) -> 'EncryptedKeystore':
        """
        Validate and wrap keystore parameters read from disk.

        Raises:
            MalformedKeystore: If the structure is not a V3 keystore
        """
        if not isinstance(data, dict):
            raise MalformedKeystore("Keystore must be a JSON object")
        if data.get("version") != KEYSTORE_VERSION:
            raise MalformedKeystore(f"Unsupported keystore version: {data.get('version')}")
        crypto = data.get("crypto") or data.get("Crypto")
        if not isinstance(crypto, dict):
            raise MalformedKeystore("Keystore has no crypto section")
        return cls(data)

    @classmethod
    def from_json(cls, text: str) -> 'EncryptedKeystore':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedKeystore("Keystore is not valid JSON") from e
        return cls.from_dict(data)

    @property
    def raw_address(self) -> Optional[str]:
        """The address as stored in the keystore (may be absent)."""
        return self._params.get("address")

    @property
    def address(self) -> str:
        """
        Checksummed address of the stored key.

        Raises:
            MalformedKeystore: If the keystore carries no address
            InvalidAddress: If the stored address is malformed
        """
        raw = self.raw_address
        if not raw:
            raise MalformedKeystore("Keystore has no address")
        return checksum_address(raw)

    def decrypt(self, password: str) -> bytes:
        """
        Decrypt and return the raw private key.

        Raises:
            DecryptionFailure: If the password is wrong or data is corrupted
        """
        try:
            return bytes(Account.decrypt(self._params, password))
        except (ValueError, TypeError, KeyError) as e:
            raise DecryptionFailure() from e

    def to_dict(self) -> dict:
        return dict(self._params)

    def to_json(self) -> str:
        return json.dumps(self._params, indent=2)


# ============================================
# Non-persisting wallet previews
# ============================================

@dataclass(frozen=True)
class WalletInfo:
    """Key material for a wallet that has not been saved anywhere."""
    address: str
    mnemonic: str
    private_key: bytes

    @property
    def address_preview(self) -> str:
        """Format for display: 0x12...cdef"""
        return f"{self.address[:4]}...{self.address[-4:]}"


def wallet_info_from_mnemonic(phrase: str, path: str = ETH_DERIVATION_PATH) -> WalletInfo:
    """Derive the first address of a recovery phrase without saving anything."""
    private_key = private_key_from_mnemonic(phrase, path)
    return WalletInfo(
        address=Account.from_key(private_key).address,
        mnemonic=phrase,
        private_key=private_key,
    )


def create_wallet_info(strength: int = 256) -> WalletInfo:
    """Generate a new phrase (24 words by default) and preview its first address."""
    return wallet_info_from_mnemonic(generate_mnemonic(strength))
