"""Vault — dual-store persistence for secrets.

Secret values go to the platform credential store (via ``keyring``);
descriptive metadata goes to a JSON file written atomically. The registry
keeps both in step and rolls back when the metadata write fails.

Security Note (Threat Model):
    The metadata file is not encrypted; it is protected only by 0600/0700
    permissions and never contains secret values. In fallback mode values
    are held in process memory and are lost on exit.
"""

from .backend import SecureValueStore
from .config import VaultConfig
from .exceptions import (
    BackendError,
    BackendUnavailable,
    ConflictError,
    NotFoundError,
    PersistError,
    RollbackFailure,
    ValidationError,
    VaultError,
)
from .metadata import MetadataFile
from .models import Secret, SecretCategory, SecretMetadata, SecretUpdate
from .registry import SecretRegistry
from .service import ErrorCategory, SecretService, ServiceResult

__all__ = [
    "SecureValueStore",
    "MetadataFile",
    "SecretRegistry",
    "SecretService",
    "ServiceResult",
    "ErrorCategory",
    "VaultConfig",
    "Secret",
    "SecretCategory",
    "SecretMetadata",
    "SecretUpdate",
    "VaultError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "BackendUnavailable",
    "BackendError",
    "PersistError",
    "RollbackFailure",
]
