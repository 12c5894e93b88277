"""Encryption of stored API keys with a per-installation Fernet key."""

import logging
import os
from pathlib import Path

import keyring
from cryptography.fernet import Fernet, InvalidToken
from keyring.errors import KeyringError

from gcore_dashboard.utils.constants import KEYCHAIN_ACCOUNT_NAME, KEYCHAIN_SERVICE_NAME


class SecretCipher:
    """Encrypts and decrypts secrets for storage at rest.

    The Fernet key lives in the OS keychain when one is available, otherwise
    in a ``.encryption_key`` file (mode 0600) inside the app data directory.
    """

    def __init__(self, app_data_dir: Path, use_keychain: bool = True):
        """Initialize the cipher.

        Args:
            app_data_dir: Directory for the fallback key file
            use_keychain: Try the OS keychain before the key file
        """
        self.app_data_dir = Path(app_data_dir)
        self.key_file = self.app_data_dir / ".encryption_key"
        self.use_keychain = use_keychain
        self.logger = logging.getLogger(__name__)
        self._fernet: Fernet | None = None
        self._keychain_unavailable = False

    @property
    def fernet(self) -> Fernet:
        """Lazy initialization of the Fernet instance."""
        if self._fernet is None:
            self._fernet = Fernet(self._get_encryption_key())
        return self._fernet

    def _get_encryption_key(self) -> bytes:
        """Get or create the encryption key for this installation."""
        key = self._read_keychain_key() or self._read_file_key()
        if key:
            return key

        key = Fernet.generate_key()
        # an unreadable keychain may still hold a key, so it is not overwritten
        if self._keychain_unavailable or not self._store_keychain_key(key):
            self._store_file_key(key)
        return key

    def _read_keychain_key(self) -> bytes | None:
        if not self.use_keychain:
            return None
        try:
            stored = keyring.get_password(KEYCHAIN_SERVICE_NAME, KEYCHAIN_ACCOUNT_NAME)
        except KeyringError as e:
            self.logger.warning(f"Could not access OS keychain: {e}")
            self._keychain_unavailable = True
            return None
        if not stored:
            return None
        try:
            Fernet(stored.encode("utf-8"))
        except ValueError as e:
            self.logger.warning(f"Invalid encryption key in OS keychain: {e}")
            return None
        return stored.encode("utf-8")

    def _store_keychain_key(self, key: bytes) -> bool:
        if not self.use_keychain:
            return False
        try:
            keyring.set_password(
                KEYCHAIN_SERVICE_NAME, KEYCHAIN_ACCOUNT_NAME, key.decode("utf-8")
            )
        except KeyringError as e:
            self.logger.warning(f"Keychain storage failed, using key file: {e}")
            return False
        self.logger.info("Generated new encryption key in OS keychain")
        return True

    def _read_file_key(self) -> bytes | None:
        if not self.key_file.exists():
            return None
        try:
            key = self.key_file.read_bytes()
            Fernet(key)  # raises if invalid
            return key
        except (OSError, ValueError) as e:
            self.logger.warning(f"Invalid encryption key file, generating new one: {e}")
            return None

    def _store_file_key(self, key: bytes) -> None:
        self.app_data_dir.mkdir(parents=True, exist_ok=True)
        try:
            self.key_file.write_bytes(key)
            os.chmod(self.key_file, 0o600)
        except OSError as e:
            self.logger.error(f"Could not save encryption key: {e}")
            raise
        self.logger.info("Generated new encryption key file")

    def encrypt(self, secret: str) -> str:
        return self.fernet.encrypt(secret.encode("utf-8")).decode("utf-8")

    def decrypt(self, token: str) -> str | None:
        """Decrypt a stored secret. Returns None if it cannot be decrypted."""
        try:
            return self.fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            self.logger.error("Failed to decrypt stored API key")
            return None
