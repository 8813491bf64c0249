"""
Secret Store - Durable key-value storage for small secrets.

The wallet keeps exactly one entry here: the recovery phrase. Two
implementations are provided:
- InMemorySecretStore: process-lifetime storage (tests, ephemeral wallets)
- FileSecretStore: AES-256-GCM encrypted JSON file, keyed by a random
  device secret kept in a separate owner-only file
"""

import json
import logging
import secrets
import threading
from pathlib import Path
from typing import Optional, Protocol

from cryptography.exceptions import InvalidTag

from .crypto import (
    decrypt_secret,
    derive_key,
    encrypt_secret,
    set_secure_permissions,
)
from .errors import InvalidPath, MalformedKeystore

logger = logging.getLogger(__name__)

SECRETS_FILE_VERSION = 1
DEVICE_SECRET_SIZE = 32


class SecretStore(Protocol):
    def set(self, key: str, value: str) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemorySecretStore:
    """Secret store backed by a dict."""

    def __init__(self):
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class FileSecretStore:
    """
    Encrypted file-backed secret store.

    Layout:
        <dir>/secrets.json   {"version", "kdf": {...}, "entries": {key: {ciphertext, iv, tag}}}
        <dir>/device.key     random device secret (hex), mode 0600

    The encryption key is derived once per instance with Argon2id from the
    device secret and the file's salt.
    """

    def __init__(self, directory: str | Path,
                 time_cost: int = 2, memory_cost: int = 19456, parallelism: int = 1):
        """
        Args:
            directory: Directory holding secrets.json and device.key
            time_cost, memory_cost, parallelism: Argon2id parameters
        """
        self.directory = Path(directory)
        self.secrets_path = self.directory / "secrets.json"
        self.device_key_path = self.directory / "device.key"
        self._kdf_params = {
            "algorithm": "argon2id",
            "time_cost": time_cost,
            "memory_cost": memory_cost,
            "parallelism": parallelism,
        }
        self._lock = threading.Lock()
        self._key: Optional[bytes] = None
        self._salt: Optional[bytes] = None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data["entries"][key] = encrypt_secret(value, self._encryption_key(data))
            self._write(data)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            data = self._read()
            entry = data["entries"].get(key)
            if entry is None:
                return None
            try:
                return decrypt_secret(entry, self._encryption_key(data))
            except (InvalidTag, ValueError, KeyError) as e:
                raise MalformedKeystore(f"Secret '{key}' cannot be decrypted") from e

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data["entries"]:
                del data["entries"][key]
                self._write(data)

    # ============================================
    # File Operations
    # ============================================

    def _read(self) -> dict:
        if not self.secrets_path.exists():
            return {
                "version": SECRETS_FILE_VERSION,
                "kdf": dict(self._kdf_params, salt=secrets.token_bytes(16).hex()),
                "entries": {},
            }
        try:
            with open(self.secrets_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise MalformedKeystore("Secret store file is unreadable") from e

        if data.get("version") != SECRETS_FILE_VERSION:
            raise MalformedKeystore(f"Unsupported secret store version: {data.get('version')}")
        data.setdefault("entries", {})
        return data

    def _write(self, data: dict) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InvalidPath(str(e)) from e

        temp_path = self.secrets_path.with_suffix('.tmp')
        with open(temp_path, 'w') as f:
            json.dump(data, f, indent=2)
        temp_path.replace(self.secrets_path)
        set_secure_permissions(self.secrets_path)

    def _device_secret(self) -> str:
        if self.device_key_path.exists():
            return self.device_key_path.read_text().strip()

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InvalidPath(str(e)) from e

        device_secret = secrets.token_bytes(DEVICE_SECRET_SIZE).hex()
        self.device_key_path.write_text(device_secret)
        set_secure_permissions(self.device_key_path)
        logger.info(f"Created device secret at {self.device_key_path}")
        return device_secret

    def _encryption_key(self, data: dict) -> bytes:
        kdf = data["kdf"]
        salt = bytes.fromhex(kdf["salt"])
        if self._key is None or self._salt != salt:
            self._key = derive_key(
                self._device_secret(),
                salt,
                time_cost=kdf["time_cost"],
                memory_cost=kdf["memory_cost"],
                parallelism=kdf["parallelism"],
            )
            self._salt = salt
        return self._key
