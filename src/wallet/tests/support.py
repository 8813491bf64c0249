"""Shared fixtures for wallet tests."""

from pathlib import Path

from wallet.keystore import KeystoreStorage
from wallet.manager import AccountManager
from wallet.secret_store import InMemorySecretStore

# Well-known development phrase; first address is fixed by BIP-44
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_MNEMONIC_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

TEST_PRIVATE_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

# Cheap KDF so each keystore takes milliseconds
FAST_KDF = "pbkdf2"
FAST_KDF_ITERATIONS = 1000


def make_account_manager(directory: Path, secret_store=None) -> AccountManager:
    return AccountManager(
        KeystoreStorage(Path(directory) / "keystore"),
        secret_store if secret_store is not None else InMemorySecretStore(),
        kdf=FAST_KDF,
        kdf_iterations=FAST_KDF_ITERATIONS,
    )
