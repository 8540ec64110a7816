from .version import __version__
from .vault import (
    MetadataFile,
    SecretRegistry,
    SecretService,
    SecureValueStore,
    VaultConfig,
)


def build_service(config: VaultConfig, backend=None) -> SecretService:
    """Wire store, metadata file and registry together for ``config``."""
    store = SecureValueStore(config.service_name, backend=backend)
    metadata_file = MetadataFile(config.data_dir)
    registry = SecretRegistry.load(store, metadata_file)
    return SecretService(registry)


__all__ = ["__version__", "build_service"]
