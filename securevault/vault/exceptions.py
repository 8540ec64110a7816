"""
Vault errors.

Every error raised by the engine derives from ``VaultError`` so the service
layer can translate them into caller-facing categories in one place.
"""


class VaultError(Exception):
    """Base class for vault errors."""


class ValidationError(VaultError):
    """A caller-supplied field is missing or malformed. Never mutates state."""


class ConflictError(VaultError):
    """A secret with the same id already exists."""

    def __init__(self, secret_id: str):
        super().__init__(f"Secret with id {secret_id!r} already exists")
        self.secret_id = secret_id


class NotFoundError(VaultError):
    """No live secret has the requested id."""

    def __init__(self, secret_id: str):
        super().__init__(f"Secret {secret_id!r} not found")
        self.secret_id = secret_id


class BackendUnavailable(VaultError):
    """The platform credential store failed its startup probe."""


class BackendError(VaultError):
    """A set/delete against the live credential store failed."""


class PersistError(VaultError):
    """The metadata file could not be written."""


class RollbackFailure(VaultError):
    """Undoing a side effect failed while rolling back an operation.

    Only ever logged: the error that triggered the rollback is the one
    reported to the caller.
    """
