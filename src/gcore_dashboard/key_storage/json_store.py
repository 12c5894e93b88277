"""File-backed credential store."""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gcore_dashboard.key_storage.encryption import SecretCipher
from gcore_dashboard.key_storage.models import CredentialRecord
from gcore_dashboard.key_storage.store import KeyStore, KeyStoreError
from gcore_dashboard.utils.constants import STORAGE_KEY


class JsonFileKeyStore(KeyStore):
    """Persists the credential list as ``{"gcore_api_keys": [...]}`` in a JSON file.

    With a ``SecretCipher`` the ``apiKey`` of every record is encrypted on
    disk. Entries that fail to parse or decrypt are hidden from reads but
    written back unchanged, so a later save never drops them. A file that is
    not a credential document reads as empty and is never overwritten.
    """

    def __init__(self, keys_file: Path | str, cipher: SecretCipher | None = None):
        super().__init__()
        self.keys_file = Path(keys_file)
        self.cipher = cipher

    def _ensure_parent_dir(self) -> None:
        parent = self.keys_file.parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)
            try:
                os.chmod(parent, 0o700)
            except OSError as e:
                self.logger.warning(f"Could not set directory permissions: {e}")

    def _read_document(self) -> dict[str, Any]:
        """Read the keys file.

        Returns:
            The JSON document, or an empty one if the file does not exist

        Raises:
            KeyStoreError: if the file exists but does not hold a credential list
        """
        if not self.keys_file.exists():
            return {}

        try:
            with open(self.keys_file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise KeyStoreError(f"Cannot read API keys from {self.keys_file}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get(STORAGE_KEY, []), list):
            raise KeyStoreError(
                f"{self.keys_file} does not hold a '{STORAGE_KEY}' list of API keys"
            )
        return data

    def _parse_entries(
        self, entries: list[Any]
    ) -> tuple[list[CredentialRecord], list[Any]]:
        """Split raw entries into readable records and entries kept as-is."""
        records: list[CredentialRecord] = []
        unreadable: list[Any] = []
        for raw in entries:
            try:
                record = CredentialRecord.model_validate(raw)
            except ValidationError as e:
                self.logger.error(f"Skipping malformed API key record: {e}")
                unreadable.append(raw)
                continue

            if self.cipher is not None:
                api_key = self.cipher.decrypt(record.api_key)
                if api_key is None:
                    self.logger.error(f"Skipping API key {record.id}: cannot decrypt")
                    unreadable.append(raw)
                    continue
                record = record.model_copy(update={"api_key": api_key})
            records.append(record)

        return records, unreadable

    def _load(self) -> list[CredentialRecord]:
        try:
            document = self._read_document()
        except KeyStoreError as e:
            self.logger.error(str(e))
            return []

        records, _ = self._parse_entries(document.get(STORAGE_KEY, []))
        return records

    def _save(self, records: list[CredentialRecord]) -> None:
        document = self._read_document()
        _, unreadable = self._parse_entries(document.get(STORAGE_KEY, []))
        if unreadable:
            self.logger.warning(f"Keeping {len(unreadable)} unreadable API key entries")

        serialized = []
        for record in records:
            item = record.to_storage()
            if self.cipher is not None:
                item["apiKey"] = self.cipher.encrypt(record.api_key)
            serialized.append(item)

        self._ensure_parent_dir()
        tmp_file = self.keys_file.with_suffix(".tmp")
        try:
            with open(tmp_file, "w") as f:
                json.dump({**document, STORAGE_KEY: serialized + unreadable}, f, indent=2)
            os.chmod(tmp_file, 0o600)
            os.replace(tmp_file, self.keys_file)
        except OSError as e:
            self.logger.error(f"Error saving API keys to {self.keys_file}: {e}")
            raise


def create_key_store(encrypt: bool = True, use_keychain: bool = True) -> JsonFileKeyStore:
    """Build the key store in the platform user data directory.

    Args:
        encrypt: Encrypt API keys at rest
        use_keychain: Keep the encryption key in the OS keychain when possible
    """
    from gcore_dashboard.config import get_keys_file, get_user_data_dir

    cipher = SecretCipher(get_user_data_dir(), use_keychain=use_keychain) if encrypt else None
    return JsonFileKeyStore(get_keys_file(), cipher=cipher)
