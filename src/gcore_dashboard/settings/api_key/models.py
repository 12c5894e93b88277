"""Pydantic models for API key management."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gcore_dashboard.core.formatters import mask_api_key
from gcore_dashboard.key_storage.models import CredentialRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoreKeyRequest(CamelModel):
    """Request model for adding an API key."""

    name: str = Field(..., description="Display name for the account")
    api_key: str = Field(..., description="The GCore API key to store")


class UpdateKeyRequest(CamelModel):
    """Request model for editing an API key. Omitted fields are left alone."""

    name: str | None = None
    api_key: str | None = None
    is_active: bool | None = None


class ConnectionCheckRequest(CamelModel):
    """Request model for testing an API key without storing it."""

    api_key: str = Field(..., description="The GCore API key to test")


class KeyResponse(CamelModel):
    """A stored key as returned to clients, with the secret masked."""

    id: str
    name: str
    masked_api_key: str
    created_at: str
    updated_at: str | None = None
    is_active: bool

    @classmethod
    def from_record(cls, record: CredentialRecord) -> "KeyResponse":
        return cls(
            id=record.id,
            name=record.name,
            masked_api_key=mask_api_key(record.api_key),
            created_at=record.created_at,
            updated_at=record.updated_at,
            is_active=record.is_active,
        )


class StoreKeyResponse(CamelModel):
    """Response model for add/update operations."""

    success: bool
    message: str
    key: KeyResponse | None = None
    warnings: list[str] | None = None


class DeleteKeyResponse(CamelModel):
    """Response model for delete key operation."""

    success: bool
    message: str


class ConnectionCheckResponse(CamelModel):
    """Response model for a connection test."""

    success: bool
    data: Any = None
    error: str | None = None
