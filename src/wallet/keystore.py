"""
Keystore Storage - The one encrypted keystore file on this device.

Layout: <keystore_dir>/key.json (V3 keystore parameters).

A save always supersedes the previous file wholesale. The decrypted-context
cache is a single slot guarded by a lock, so a reader never sees it half
populated.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .crypto import EncryptedKeystore, set_secure_permissions
from .errors import InvalidAddress, InvalidPath, MalformedKeystore

logger = logging.getLogger(__name__)

KEYSTORE_FILENAME = "key.json"


class KeystoreStorage:
    """Loads, caches and atomically replaces the device keystore."""

    def __init__(self, keystore_dir: str | Path):
        """
        Args:
            keystore_dir: Directory that holds the keystore file
        """
        self.keystore_dir = Path(keystore_dir)
        self.keystore_path = self.keystore_dir / KEYSTORE_FILENAME
        self._cache: Optional[EncryptedKeystore] = None
        self._lock = threading.RLock()

    def save(self, keystore: EncryptedKeystore) -> None:
        """
        Persist a keystore, replacing any previous one.

        The cache only changes once the file is in place, so a failed save
        leaves the previous keystore active both in memory and on disk.

        Raises:
            InvalidPath: If the keystore directory or file cannot be written
        """
        with self._lock:
            temp_path = self.keystore_path.with_suffix('.tmp')
            try:
                self.keystore_dir.mkdir(parents=True, exist_ok=True)
                with open(temp_path, 'w') as f:
                    f.write(keystore.to_json())
                temp_path.replace(self.keystore_path)
            except OSError as e:
                raise InvalidPath(f"Could not write keystore: {e}") from e
            set_secure_permissions(self.keystore_path)
            self._cache = keystore

            # One keystore per device
            for stale in self._keystore_files():
                if stale != self.keystore_path:
                    logger.info(f"Removing superseded keystore {stale.name}")
                    stale.unlink(missing_ok=True)

            logger.info(f"Saved keystore for {keystore.raw_address}")

    def load(self) -> EncryptedKeystore:
        """
        Return the cached keystore, reading it from disk on first use.

        Raises:
            MalformedKeystore: If no keystore with an address can be found
        """
        with self._lock:
            if self._cache is not None:
                return self._cache

            for path in self._keystore_files():
                keystore = self._read(path)
                if keystore is None:
                    continue
                self._cache = keystore
                return keystore

            raise MalformedKeystore(f"No keystore found in {self.keystore_dir}")

    def invalidate(self) -> None:
        """Drop the cached keystore; the next load() re-reads disk."""
        with self._lock:
            self._cache = None

    def delete(self) -> None:
        """Remove every keystore file and the cache."""
        with self._lock:
            self._cache = None
            for path in self._keystore_files():
                path.unlink(missing_ok=True)
            logger.info("Deleted device keystore")

    def exists(self) -> bool:
        with self._lock:
            return self._cache is not None or bool(self._keystore_files())

    def keystore_files(self) -> list[Path]:
        """All keystore files currently in the directory."""
        with self._lock:
            return self._keystore_files()

    def _keystore_files(self) -> list[Path]:
        if not self.keystore_dir.is_dir():
            return []
        return sorted(p for p in self.keystore_dir.glob("*.json") if p.is_file())

    def _read(self, path: Path) -> Optional[EncryptedKeystore]:
        """Read one keystore file; None if it isn't a usable keystore."""
        try:
            keystore = EncryptedKeystore.from_json(path.read_text())
            keystore.address  # must resolve to an address
            return keystore
        except OSError as e:
            logger.warning(f"Could not read keystore {path.name}: {e}")
        except (MalformedKeystore, InvalidAddress) as e:
            logger.warning(f"Ignoring keystore {path.name}: {e.message}")
        return None
