"""Vault data models."""

from __future__ import annotations

import time
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class SecretCategory(str, Enum):
    PASSWORD = "password"
    API_KEY = "api-key"
    TOKEN = "token"
    CERTIFICATE = "certificate"
    NOTE = "note"
    OTHER = "other"


class SecretMetadata(BaseModel):
    """Descriptive fields of a secret. This is what goes to disk, never the value."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    category: SecretCategory
    notes: Optional[str] = None
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    def to_record(self) -> dict:
        """Return the on-disk JSON object (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)


class Secret(SecretMetadata):
    """A secret as seen by callers: metadata plus the sensitive value."""

    value: str

    @classmethod
    def from_metadata(cls, metadata: SecretMetadata, value: str) -> "Secret":
        return cls(**metadata.model_dump(exclude={"value"}), value=value)

    def metadata(self) -> SecretMetadata:
        return SecretMetadata(**self.model_dump(exclude={"value"}))


def _non_empty_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise PydanticCustomError(
            "empty_title", "Title must be a non-empty string"
        )
    return value


def _non_empty_value(value: Optional[str]) -> Optional[str]:
    if value == "":
        raise PydanticCustomError(
            "empty_value", "Secret value cannot be empty"
        )
    return value


class SecretCreate(BaseModel):
    """Validated payload for creating a secret."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: StrictStr = Field(min_length=1)
    title: StrictStr
    value: StrictStr
    category: SecretCategory
    notes: Optional[StrictStr] = None
    created_at: Optional[StrictInt] = Field(default=None, alias="createdAt")
    updated_at: Optional[StrictInt] = Field(default=None, alias="updatedAt")

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return _non_empty_title(v)

    @field_validator("value")
    @classmethod
    def check_value(cls, v: Optional[str]) -> Optional[str]:
        return _non_empty_value(v)

    def to_secret(self, now: Optional[int] = None) -> Secret:
        """Build the stored record, filling missing timestamps with ``now``."""
        now = now_ms() if now is None else now
        created = self.created_at if self.created_at is not None else now
        updated = self.updated_at if self.updated_at is not None else created
        return Secret(
            id=self.id,
            title=self.title,
            value=self.value,
            category=self.category,
            notes=self.notes,
            created_at=created,
            updated_at=max(updated, created),
        )


# Fields that may be omitted from an update but never explicitly nulled.
_NON_NULLABLE = ("title", "value", "category", "notes")


class SecretUpdate(BaseModel):
    """Partial update. Only fields present in ``model_fields_set`` are applied."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[StrictStr] = None
    value: Optional[StrictStr] = None
    category: Optional[SecretCategory] = None
    notes: Optional[StrictStr] = None
    updated_at: Optional[StrictInt] = Field(default=None, alias="updatedAt")

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return _non_empty_title(v)

    @field_validator("value")
    @classmethod
    def check_value(cls, v: Optional[str]) -> Optional[str]:
        return _non_empty_value(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "SecretUpdate":
        for name in _NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                if name == "value":
                    raise PydanticCustomError(
                        "empty_value", "Secret value cannot be empty"
                    )
                raise PydanticCustomError(
                    "null_field", "{field} cannot be null", {"field": name}
                )
        return self

    def provided(self, name: str) -> bool:
        return name in self.model_fields_set
