"""Pydantic model for stored credential records."""

from pydantic import BaseModel, ConfigDict, Field


class CredentialRecord(BaseModel):
    """A named GCore API key as persisted by the key store.

    Field names are snake_case in Python and camelCase on disk and on the wire.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    api_key: str = Field(alias="apiKey")
    created_at: str = Field(alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    is_active: bool = Field(default=True, alias="isActive")

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# Fields a caller may change through ``KeyStore.update``
UPDATABLE_FIELDS = {"name", "api_key", "is_active"}
