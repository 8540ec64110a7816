"""
MetadataFile — durable JSON record of every secret's metadata.

The file holds a JSON array of metadata objects (never values), in insertion
order. Writes go through a temp file in the same directory followed by an
atomic ``os.replace``, so a reader sees either the complete old file or the
complete new one.

Default locations:
    Windows  %LOCALAPPDATA%\\SecureVault\\metadata.json
    macOS    ~/Library/Application Support/SecureVault/metadata.json
    other    $XDG_CONFIG_HOME/securevault/metadata.json (~/.config fallback)
"""
import os
import sys
import logging
import tempfile
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import orjson
from pydantic import ValidationError as PydanticValidationError

from .exceptions import PersistError
from .models import SecretMetadata

logger = logging.getLogger("securevault.vault")

METADATA_FILENAME = "metadata.json"
DIR_MODE = 0o700
FILE_MODE = 0o600

PathLike = Union[str, os.PathLike]


def default_directory(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return the per-OS application data directory.

    Args:
        platform: ``sys.platform`` value to resolve for.
        environ: Environment mapping consulted for LOCALAPPDATA/XDG_CONFIG_HOME.
        home: Home directory to fall back on.
    """
    platform = sys.platform if platform is None else platform
    environ = os.environ if environ is None else environ
    home = Path.home() if home is None else home
    if platform == "win32":
        local_app_data = environ.get("LOCALAPPDATA") or str(
            home / "AppData" / "Local"
        )
        return Path(local_app_data) / "SecureVault"
    if platform == "darwin":
        return home / "Library" / "Application Support" / "SecureVault"
    config_home = environ.get("XDG_CONFIG_HOME") or str(home / ".config")
    return Path(config_home) / "securevault"


class MetadataFile:
    """Load and atomically save the metadata array.

    Args:
        directory: Directory override. When None the per-OS default is used.
        platform: Passed to :func:`default_directory`.
        environ: Passed to :func:`default_directory`.
    """

    def __init__(
        self,
        directory: Optional[PathLike] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._directory = Path(directory) if directory is not None else None
        self._platform = platform
        self._environ = environ

    def resolve_path(self, directory: Optional[PathLike] = None) -> Path:
        """Return the metadata file path, creating its directory (0700) if needed."""
        if directory is not None:
            config_dir = Path(directory)
        elif self._directory is not None:
            config_dir = self._directory
        else:
            config_dir = default_directory(self._platform, self._environ)
        if not config_dir.exists():
            config_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        return config_dir / METADATA_FILENAME

    def load(self, directory: Optional[PathLike] = None) -> list[SecretMetadata]:
        """Read and validate the metadata file.

        A missing, unreadable or malformed file yields an empty list; the file
        itself is left as it is. Array items that fail validation are skipped.
        """
        try:
            path = self.resolve_path(directory)
            if not path.exists():
                return []
            parsed = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as err:
            logger.warning("Failed to load metadata from disk: %s", err)
            return []
        if not isinstance(parsed, list):
            logger.warning(
                "Metadata file %s has invalid format; expected an array. "
                "Falling back to empty list.", path,
            )
            return []
        entries: list[SecretMetadata] = []
        for index, item in enumerate(parsed):
            try:
                entries.append(SecretMetadata.model_validate(item))
            except PydanticValidationError as err:
                logger.warning(
                    "Skipping invalid metadata entry #%d in %s: %d error(s)",
                    index, path, err.error_count(),
                )
        logger.debug("Loaded %d metadata entries from %s", len(entries), path)
        return entries

    def save(
        self,
        entries: Iterable[SecretMetadata],
        directory: Optional[PathLike] = None,
    ) -> None:
        """Atomically replace the metadata file with ``entries``.

        Raises:
            PersistError: If the directory, temp file, chmod or rename fails. The
                target is untouched in that case.
        """
        path: Optional[Path] = None
        tmp_name: Optional[str] = None
        try:
            path = self.resolve_path(directory)
            data = orjson.dumps(
                [entry.to_record() for entry in entries],
                option=orjson.OPT_INDENT_2,
            )
            # mkstemp creates the file 0600 with a unique name
            fd, tmp_name = tempfile.mkstemp(
                prefix=f"{METADATA_FILENAME}.tmp-", dir=path.parent,
            )
            with os.fdopen(fd, "wb") as fp:
                fp.write(data)
                fp.flush()
                os.fsync(fp.fileno())
            os.chmod(tmp_name, FILE_MODE)
            # the rename is the last step that can fail
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as err:
            target = path or "[metadata path unavailable]"
            logger.error("Failed to save metadata to %s: %s", target, err)
            raise PersistError(f"Failed to persist metadata: {err}") from err
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as cleanup_err:
                    logger.debug("Could not remove temp file %s: %s", tmp_name, cleanup_err)
