"""
SecureValueStore — uniform access to the platform credential store.

The store talks to a keyring backend (macOS Keychain, Windows Credential
Locker, Secret Service, ...). On construction it probes the backend once by
writing and deleting a sentinel entry. If the probe fails, the store switches
to a process-local dict for the rest of its life. The switch is one-way:
values written in fallback mode vanish when the process exits.

Security Note:
    Never log secret values. Only log keys and the storage mode.
"""
import logging
import uuid
from typing import Any, Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import BackendError, BackendUnavailable

logger = logging.getLogger("securevault.vault")

MODE_KEYRING = "keyring"
MODE_MEMORY = "memory"

_PROBE_PREFIX = "__securevault_probe__"


class SecureValueStore:
    """Key/value access to secret values, keyed by secret id.

    Args:
        service_name: Keychain service every entry is filed under.
        backend: Object exposing ``set_password``, ``get_password`` and
            ``delete_password``. Defaults to ``keyring.get_keyring()``.
    """

    def __init__(self, service_name: str, backend: Any = None):
        self._service = service_name
        self._memory: dict[str, str] = {}
        self._backend = None
        try:
            candidate = backend if backend is not None else keyring.get_keyring()
            self._probe(candidate)
        except BackendUnavailable as err:
            logger.warning(
                "Secure storage unavailable (%s); using in-memory storage. "
                "Secret values will not survive a restart.", err,
            )
        else:
            self._backend = candidate
            logger.info(
                "Secure storage available: values stored in %s",
                type(candidate).__name__,
            )

    def _probe(self, backend: Any) -> None:
        """Write then delete a sentinel entry.

        Raises:
            BackendUnavailable: If either call fails.
        """
        account = f"{_PROBE_PREFIX}{uuid.uuid4().hex}"
        try:
            backend.set_password(self._service, account, "probe")
            backend.delete_password(self._service, account)
        except Exception as err:
            raise BackendUnavailable(str(err) or type(err).__name__) from err

    @property
    def available(self) -> bool:
        """True when values go to the platform credential store."""
        return self._backend is not None

    @property
    def mode(self) -> str:
        return MODE_KEYRING if self.available else MODE_MEMORY

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            BackendError: If the credential store rejects the write.
        """
        if self._backend is None:
            self._memory[key] = value
            return
        try:
            self._backend.set_password(self._service, key, value)
        except Exception as err:
            raise BackendError(f"Failed to store secret {key!r}: {err}") from err

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None.

        A failing backend read is logged and reported as absent.
        """
        if self._backend is None:
            return self._memory.get(key)
        try:
            return self._backend.get_password(self._service, key)
        except KeyringError as err:
            logger.error("Failed to read secret %s: %s", key, err)
            return None

    def fetch(self, key: str) -> Optional[str]:
        """Like :meth:`get`, but a failing backend read is an error.

        Used to capture a value before it is overwritten or removed, where
        "absent" and "unreadable" must not be confused.

        Raises:
            BackendError: If the credential store rejects the read.
        """
        if self._backend is None:
            return self._memory.get(key)
        try:
            return self._backend.get_password(self._service, key)
        except Exception as err:
            raise BackendError(f"Failed to read secret {key!r}: {err}") from err

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns False if nothing was stored under it.

        Raises:
            BackendError: If the credential store rejects the delete.
        """
        if self._backend is None:
            return self._memory.pop(key, None) is not None
        try:
            self._backend.delete_password(self._service, key)
        except PasswordDeleteError:
            return False
        except Exception as err:
            raise BackendError(f"Failed to delete secret {key!r}: {err}") from err
        return True
