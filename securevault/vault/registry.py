"""
SecretRegistry — the in-memory list of secrets and the write protocol that
keeps it, the secure value store and the metadata file in step.

The value store and the metadata file cannot share a transaction, so every
mutation runs as a small saga:

1. check preconditions against memory (nothing touched yet),
2. read the prior value (an unreadable value aborts here), apply the
   value-store side effect and record how to undo it,
3. swap in the new in-memory list,
4. save the full list to disk,
5. on a save failure restore the old list and run the undo steps in reverse,
6. otherwise the operation is committed and memory equals disk.

A failing undo step is logged as a ``RollbackFailure``; the ``PersistError``
that triggered the rollback is still what the caller sees.

Callers must not run mutations concurrently from several processes against
one metadata file. Within a process, mutations are serialized by a lock.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from .backend import SecureValueStore
from .exceptions import (
    ConflictError,
    NotFoundError,
    PersistError,
    RollbackFailure,
    ValidationError,
    VaultError,
)
from .metadata import MetadataFile
from .models import Secret, SecretMetadata, SecretUpdate, now_ms

logger = logging.getLogger("securevault.vault")


class SagaState(str, Enum):
    PENDING = "pending"
    VALUE_APPLIED = "value_applied"
    METADATA_APPLIED = "metadata_applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class _Saga:
    """Tracks one mutation and the undo steps for its side effects."""

    def __init__(self, operation: str, secret_id: str):
        self.operation = operation
        self.secret_id = secret_id
        self.state = SagaState.PENDING
        self.failures: list[RollbackFailure] = []
        self._undo: list[tuple[str, Callable[[], object]]] = []

    def value_applied(self, description: str, undo: Callable[[], object]) -> None:
        self._undo.append((description, undo))
        self.state = SagaState.VALUE_APPLIED

    def metadata_applied(self) -> None:
        self.state = SagaState.METADATA_APPLIED

    def commit(self) -> None:
        self.state = SagaState.COMMITTED
        logger.debug("%s %s committed", self.operation, self.secret_id)

    def rollback(self) -> None:
        for description, undo in reversed(self._undo):
            try:
                undo()
            except VaultError as err:
                failure = RollbackFailure(
                    f"{self.operation} {self.secret_id}: could not {description}: {err}"
                )
                failure.__cause__ = err
                self.failures.append(failure)
                logger.error("Rollback step failed: %s", failure)
        self.state = SagaState.ROLLED_BACK
        logger.warning(
            "%s %s rolled back (%d undo step(s), %d failed)",
            self.operation, self.secret_id, len(self._undo), len(self.failures),
        )


class SecretRegistry:
    """Authoritative, ordered list of secret metadata.

    Args:
        store: Where secret values live.
        metadata_file: Where the metadata list is persisted.
        entries: Initial state, normally from ``metadata_file.load()``.
    """

    def __init__(
        self,
        store: SecureValueStore,
        metadata_file: MetadataFile,
        entries: Optional[Iterable[SecretMetadata]] = None,
    ):
        self._store = store
        self._file = metadata_file
        self._entries: list[SecretMetadata] = list(entries or [])
        self._lock = threading.RLock()

    @classmethod
    def load(
        cls, store: SecureValueStore, metadata_file: MetadataFile,
    ) -> SecretRegistry:
        """Seed a registry from the metadata file."""
        entries = metadata_file.load()
        logger.info(
            "Loaded %d secret(s) from %s",
            len(entries), metadata_file.resolve_path(),
        )
        return cls(store, metadata_file, entries)

    @property
    def store(self) -> SecureValueStore:
        return self._store

    @property
    def entries(self) -> list[SecretMetadata]:
        """Snapshot of the in-memory metadata, in insertion order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, secret_id: object) -> bool:
        return self._index(str(secret_id)) != -1

    def _index(self, secret_id: str) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == secret_id:
                return index
        return -1

    def _persist(self, saga: _Saga, entries: list[SecretMetadata]) -> None:
        """Swap in ``entries`` and save them; roll everything back on failure."""
        previous = self._entries
        self._entries = entries
        saga.metadata_applied()
        try:
            self._file.save(entries)
        except PersistError:
            self._entries = previous
            saga.rollback()
            raise
        saga.commit()

    def create(self, secret: Secret) -> Secret:
        """Store a new secret.

        Raises:
            ConflictError: If the id is already taken.
            BackendError: If the value store rejects the value.
            PersistError: If the metadata file cannot be written.
        """
        with self._lock:
            if self._index(secret.id) != -1:
                raise ConflictError(secret.id)
            saga = _Saga("create", secret.id)
            self._store.set(secret.id, secret.value)
            saga.value_applied(
                "remove stored value", lambda: self._store.delete(secret.id),
            )
            self._persist(saga, self._entries + [secret.metadata()])
            logger.info("Created secret %s", secret.id)
            return secret

    def update(
        self,
        secret_id: str,
        changes: SecretUpdate,
        now: Optional[int] = None,
    ) -> Secret:
        """Apply a partial update. Fields not supplied in ``changes`` are kept.

        Raises:
            NotFoundError: If no secret has this id.
            ValidationError: If no value is supplied and none is stored.
            BackendError: If the value store cannot read the current value or
                rejects the new one.
            PersistError: If the metadata file cannot be written.
        """
        with self._lock:
            index = self._index(secret_id)
            if index == -1:
                raise NotFoundError(secret_id)
            current = self._entries[index]
            prior_value = self._store.fetch(secret_id)
            saga = _Saga("update", secret_id)
            if changes.provided("value"):
                value = changes.value
                self._store.set(secret_id, value)
                if prior_value is None:
                    saga.value_applied(
                        "remove new value", lambda: self._store.delete(secret_id),
                    )
                else:
                    saga.value_applied(
                        "restore previous value",
                        lambda: self._store.set(secret_id, prior_value),
                    )
            elif prior_value is None:
                raise ValidationError(
                    f"Secret {secret_id!r} has no stored value; supply a new value"
                )
            else:
                value = prior_value
            updated = self._apply_changes(current, changes, now)
            entries = list(self._entries)
            entries[index] = updated
            self._persist(saga, entries)
            logger.info("Updated secret %s", secret_id)
            return Secret.from_metadata(updated, value)

    @staticmethod
    def _apply_changes(
        current: SecretMetadata, changes: SecretUpdate, now: Optional[int],
    ) -> SecretMetadata:
        data = current.model_dump()
        for name in ("title", "category", "notes"):
            if changes.provided(name):
                data[name] = getattr(changes, name)
        if changes.updated_at is not None:
            stamp = changes.updated_at
        else:
            stamp = now_ms() if now is None else now
        # updated_at never moves backwards
        data["updated_at"] = max(stamp, current.updated_at)
        return SecretMetadata(**data)

    def delete(self, secret_id: str) -> Union[Secret, SecretMetadata]:
        """Remove a secret.

        Returns:
            The removed ``Secret``, or only its metadata when the value store
            held nothing for it.

        Raises:
            NotFoundError: If no secret has this id.
            BackendError: If the value store cannot read or delete the value.
            PersistError: If the metadata file cannot be written.
        """
        with self._lock:
            index = self._index(secret_id)
            if index == -1:
                raise NotFoundError(secret_id)
            current = self._entries[index]
            prior_value = self._store.fetch(secret_id)
            saga = _Saga("delete", secret_id)
            self._store.delete(secret_id)
            if prior_value is not None:
                saga.value_applied(
                    "restore deleted value",
                    lambda: self._store.set(secret_id, prior_value),
                )
            self._persist(saga, self._entries[:index] + self._entries[index + 1:])
            logger.info("Deleted secret %s", secret_id)
            if prior_value is None:
                return current
            return Secret.from_metadata(current, prior_value)

    def list(self) -> list[Secret]:
        """Return every secret with its value, in insertion order.

        Entries whose value is missing from the value store (e.g. after a
        restart in fallback mode) are left out.
        """
        secrets = []
        for entry in self._entries:
            value = self._store.get(entry.id)
            if value is None:
                logger.warning("No stored value for secret %s; skipping", entry.id)
                continue
            secrets.append(Secret.from_metadata(entry, value))
        return secrets
