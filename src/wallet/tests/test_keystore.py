import json
import os
import stat
import tempfile
import unittest
from pathlib import Path

from wallet.crypto import EncryptedKeystore, parse_private_key
from wallet.errors import InvalidPath, MalformedKeystore
from wallet.keystore import KEYSTORE_FILENAME, KeystoreStorage

from .support import FAST_KDF, FAST_KDF_ITERATIONS, TEST_PRIVATE_KEY


def make_keystore(private_key: str = TEST_PRIVATE_KEY, password: str = "pass") -> EncryptedKeystore:
    return EncryptedKeystore.create(parse_private_key(private_key), password,
                                    kdf=FAST_KDF, iterations=FAST_KDF_ITERATIONS)


class KeystoreStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.dir = Path(self._tmp.name) / "keystore"
        self.storage = KeystoreStorage(self.dir)

    def test_load_without_keystore(self) -> None:
        self.assertFalse(self.storage.exists())
        with self.assertRaises(MalformedKeystore):
            self.storage.load()

    def test_save_creates_directory_and_file(self) -> None:
        keystore = make_keystore()
        self.storage.save(keystore)

        path = self.dir / KEYSTORE_FILENAME
        self.assertTrue(path.is_file())
        self.assertEqual(self.storage.keystore_files(), [path])
        self.assertFalse(path.with_suffix(".tmp").exists())

    @unittest.skipUnless(os.name == "posix", "POSIX permissions only")
    def test_file_is_owner_only(self) -> None:
        self.storage.save(make_keystore())
        mode = stat.S_IMODE((self.dir / KEYSTORE_FILENAME).stat().st_mode)
        self.assertEqual(mode, 0o600)

    def test_file_never_holds_plaintext_key(self) -> None:
        self.storage.save(make_keystore())
        text = (self.dir / KEYSTORE_FILENAME).read_text()
        self.assertNotIn(TEST_PRIVATE_KEY, text.lower())

    def test_load_reads_from_disk_after_invalidate(self) -> None:
        keystore = make_keystore()
        self.storage.save(keystore)
        self.storage.invalidate()

        loaded = self.storage.load()
        self.assertIsNot(loaded, keystore)
        self.assertEqual(loaded.address, keystore.address)
        self.assertEqual(loaded.decrypt("pass").hex(), TEST_PRIVATE_KEY)

    def test_load_uses_cache(self) -> None:
        keystore = make_keystore()
        self.storage.save(keystore)
        (self.dir / KEYSTORE_FILENAME).unlink()

        self.assertIs(self.storage.load(), keystore)

    def test_fresh_instance_reads_existing_file(self) -> None:
        keystore = make_keystore()
        self.storage.save(keystore)

        other = KeystoreStorage(self.dir)
        self.assertTrue(other.exists())
        self.assertEqual(other.load().address, keystore.address)

    def test_save_removes_superseded_files(self) -> None:
        self.dir.mkdir(parents=True)
        (self.dir / "old-wallet.json").write_text(make_keystore().to_json())

        self.storage.save(make_keystore())
        self.assertEqual(self.storage.keystore_files(), [self.dir / KEYSTORE_FILENAME])

    def test_unusable_files_are_skipped(self) -> None:
        self.dir.mkdir(parents=True)
        (self.dir / "a-garbage.json").write_text("{not json")
        no_address = make_keystore().to_dict()
        no_address.pop("address")
        (self.dir / "b-no-address.json").write_text(json.dumps(no_address))
        (self.dir / "c-version.json").write_text(json.dumps({"version": 1, "crypto": {}}))
        good = make_keystore()
        (self.dir / "d-good.json").write_text(good.to_json())

        self.assertEqual(self.storage.load().address, good.address)

    def test_only_unusable_files(self) -> None:
        self.dir.mkdir(parents=True)
        (self.dir / "garbage.json").write_text("[]")
        with self.assertRaises(MalformedKeystore):
            self.storage.load()

    def test_failed_write_keeps_previous_keystore(self) -> None:
        previous = make_keystore()
        self.storage.save(previous)
        (self.dir / "key.tmp").mkdir()

        replacement = make_keystore("0x" + "11" * 32)
        with self.assertRaises(InvalidPath):
            self.storage.save(replacement)

        self.assertIs(self.storage.load(), previous)
        self.storage.invalidate()
        self.assertEqual(self.storage.load().address, previous.address)

    def test_unwritable_directory(self) -> None:
        self.dir.parent.mkdir(parents=True, exist_ok=True)
        self.dir.write_text("not a directory")

        with self.assertRaises(InvalidPath):
            self.storage.save(make_keystore())
        self.assertFalse(self.storage.exists())

    def test_delete(self) -> None:
        self.storage.save(make_keystore())
        self.storage.delete()

        self.assertFalse(self.storage.exists())
        self.assertEqual(self.storage.keystore_files(), [])
        with self.assertRaises(MalformedKeystore):
            self.storage.load()


if __name__ == "__main__":
    unittest.main()
