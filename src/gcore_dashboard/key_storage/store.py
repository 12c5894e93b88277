"""Credential store interface and the in-memory implementation."""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from gcore_dashboard.key_storage.models import UPDATABLE_FIELDS, CredentialRecord

# camelCase names accepted in partial updates coming from the HTTP layer
FIELD_ALIASES = {"apiKey": "api_key", "isActive": "is_active"}


class KeyStoreError(Exception):
    """Raised when the persisted credential list cannot be safely rewritten."""


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class KeyStore(ABC):
    """A flat list of named credential records.

    Subclasses only provide ``_load`` and ``_save``; the record operations
    are shared. There is no cross-process locking, the last writer wins.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    @abstractmethod
    def _load(self) -> list[CredentialRecord]:
        """Read all records in storage order."""

    @abstractmethod
    def _save(self, records: list[CredentialRecord]) -> None:
        """Replace the persisted list."""

    def list_keys(self) -> list[CredentialRecord]:
        """All records in storage order."""
        return self._load()

    def get(self, key_id: str) -> CredentialRecord | None:
        return next((record for record in self._load() if record.id == key_id), None)

    def add(self, name: str, api_key: str) -> CredentialRecord:
        """Store a new active credential with a fresh time-derived id."""
        records = self._load()
        record = CredentialRecord(
            id=self._new_id({record.id for record in records}),
            name=name,
            api_key=api_key,
            created_at=utc_timestamp(),
            is_active=True,
        )
        records.append(record)
        self._save(records)
        self.logger.info(f"Added API key '{name}' ({record.id})")
        return record

    def update(self, key_id: str, updates: dict[str, Any]) -> CredentialRecord | None:
        """Merge ``updates`` into the record with ``key_id``.

        Unknown fields are ignored. Returns the updated record, or None if the
        id is not stored.
        """
        records = self._load()
        for index, record in enumerate(records):
            if record.id != key_id:
                continue
            changes = {
                FIELD_ALIASES.get(field, field): value
                for field, value in updates.items()
            }
            changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
            changes["updated_at"] = utc_timestamp()
            records[index] = record.model_copy(update=changes)
            self._save(records)
            self.logger.info(f"Updated API key {key_id}: {sorted(changes)}")
            return records[index]

        self.logger.debug(f"Update skipped, no API key with id {key_id}")
        return None

    def delete(self, key_id: str) -> bool:
        """Remove the record with ``key_id``. Returns False if it was not stored."""
        records = self._load()
        remaining = [record for record in records if record.id != key_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        self.logger.info(f"Deleted API key {key_id}")
        return True

    @staticmethod
    def _new_id(existing: set[str]) -> str:
        candidate = int(time.time() * 1000)
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)


class InMemoryKeyStore(KeyStore):
    """Keeps records in a list; used for tests and throwaway sessions."""

    def __init__(self, records: list[CredentialRecord] | None = None) -> None:
        super().__init__()
        self._records: list[CredentialRecord] = list(records or [])

    def _load(self) -> list[CredentialRecord]:
        return list(self._records)

    def _save(self, records: list[CredentialRecord]) -> None:
        self._records = list(records)
