"""Shared fixtures: an in-memory keyring double and a temp metadata directory."""
import pytest
from keyring.errors import KeyringError, NoKeyringError, PasswordDeleteError

from securevault.vault import (
    MetadataFile,
    PersistError,
    SecretRegistry,
    SecretService,
    SecureValueStore,
)

SERVICE_NAME = "SecureVault-Test"


class FakeKeyring:
    """Keyring backend double with switchable failures."""

    def __init__(self):
        self.passwords = {}
        self.fail_set = False
        self.fail_get = False
        self.fail_delete = False

    def set_password(self, service, account, password):
        if self.fail_set:
            raise KeyringError("set failed")
        self.passwords[(service, account)] = password

    def get_password(self, service, account):
        if self.fail_get:
            raise KeyringError("get failed")
        return self.passwords.get((service, account))

    def delete_password(self, service, account):
        if self.fail_delete:
            raise KeyringError("delete failed")
        try:
            del self.passwords[(service, account)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None

    def value(self, account):
        return self.passwords.get((SERVICE_NAME, account))


class NoKeyring:
    """Backend that behaves like keyring's 'fail' backend."""

    def __init__(self):
        self.calls = 0

    def set_password(self, service, account, password):
        self.calls += 1
        raise NoKeyringError("No recommended backend was available.")

    def get_password(self, service, account):
        self.calls += 1
        raise NoKeyringError("No recommended backend was available.")

    def delete_password(self, service, account):
        self.calls += 1
        raise NoKeyringError("No recommended backend was available.")


class FlakyMetadataFile(MetadataFile):
    """MetadataFile whose next ``fail_saves`` saves raise PersistError."""

    def __init__(self, directory):
        super().__init__(directory)
        self.fail_saves = 0

    def save(self, entries, directory=None):
        if self.fail_saves:
            self.fail_saves -= 1
            raise PersistError("Failed to persist metadata: disk full")
        super().save(entries, directory)


@pytest.fixture
def fake_keyring():
    return FakeKeyring()


@pytest.fixture
def store(fake_keyring):
    return SecureValueStore(SERVICE_NAME, backend=fake_keyring)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "securevault"


@pytest.fixture
def metadata_file(data_dir):
    return FlakyMetadataFile(data_dir)


@pytest.fixture
def registry(store, metadata_file):
    return SecretRegistry.load(store, metadata_file)


@pytest.fixture
def service(registry):
    return SecretService(registry)


@pytest.fixture
def fresh_load(data_dir):
    """Read the metadata file the way a restarted process would."""
    return lambda: MetadataFile(data_dir).load()
