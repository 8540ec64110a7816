"""
SecretService — caller-facing façade over SecretRegistry.

Validates raw payloads (decoded JSON bodies) and turns every outcome into a
``ServiceResult`` whose ``error`` is one of four categories. Internal error
details (paths, backend messages) are logged, not returned.
"""
import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .exceptions import (
    BackendError,
    ConflictError,
    NotFoundError,
    PersistError,
    ValidationError,
)
from .models import SecretCreate, SecretUpdate
from .registry import SecretRegistry

logger = logging.getLogger("securevault.vault")


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence_failure"


class ServiceResult(BaseModel):
    """Outcome of a service call: ``data`` on success, ``error`` otherwise."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Any = None
    error: Optional[ErrorCategory] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(data=data)

    @classmethod
    def failure(cls, category: ErrorCategory, message: str) -> "ServiceResult":
        return cls(error=category, message=message)


def _describe(err: PydanticValidationError) -> str:
    """First validation problem as 'field: message'."""
    first = err.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    if field:
        return f"{field}: {first['msg']}"
    return first["msg"]


class SecretService:
    """Validate input and delegate to the registry.

    Args:
        registry: The registry owning the secrets.
    """

    def __init__(self, registry: SecretRegistry):
        self._registry = registry

    @property
    def registry(self) -> SecretRegistry:
        return self._registry

    @property
    def storage_mode(self) -> str:
        return self._registry.store.mode

    def _run(self, operation: str, func: Callable[[], Any]) -> ServiceResult:
        try:
            return ServiceResult.success(func())
        except ValidationError as err:
            return ServiceResult.failure(ErrorCategory.VALIDATION, str(err))
        except NotFoundError:
            return ServiceResult.failure(ErrorCategory.NOT_FOUND, "Secret not found")
        except ConflictError:
            return ServiceResult.failure(
                ErrorCategory.CONFLICT, "Secret with this ID already exists"
            )
        except (PersistError, BackendError) as err:
            logger.error("Failed to %s secret: %s", operation, err)
            return ServiceResult.failure(
                ErrorCategory.PERSISTENCE, f"Failed to {operation} secret"
            )

    def get_all(self) -> ServiceResult:
        """List every secret with its value."""
        return self._run("fetch", self._registry.list)

    def create(self, payload: Any) -> ServiceResult:
        """Create a secret from ``{id, title, value, category, notes?, createdAt?, updatedAt?}``."""
        if not isinstance(payload, Mapping):
            return ServiceResult.failure(
                ErrorCategory.VALIDATION, "Request body must be a JSON object"
            )
        try:
            request = SecretCreate.model_validate(payload)
        except PydanticValidationError as err:
            return ServiceResult.failure(ErrorCategory.VALIDATION, _describe(err))
        return self._run("create", lambda: self._registry.create(request.to_secret()))

    def update(self, secret_id: Any, payload: Any) -> ServiceResult:
        """Partially update a secret; omitted fields keep their values."""
        if not isinstance(secret_id, str) or not secret_id:
            return ServiceResult.failure(
                ErrorCategory.VALIDATION, "Secret id must be a non-empty string"
            )
        if not isinstance(payload, Mapping):
            return ServiceResult.failure(
                ErrorCategory.VALIDATION, "Request body must be a JSON object"
            )
        try:
            changes = SecretUpdate.model_validate(payload)
        except PydanticValidationError as err:
            return ServiceResult.failure(ErrorCategory.VALIDATION, _describe(err))
        return self._run("update", lambda: self._registry.update(secret_id, changes))

    def delete(self, secret_id: Any) -> ServiceResult:
        if not isinstance(secret_id, str) or not secret_id:
            return ServiceResult.failure(
                ErrorCategory.VALIDATION, "Secret id must be a non-empty string"
            )
        return self._run("delete", lambda: self._registry.delete(secret_id))
