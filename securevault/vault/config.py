"""
Vault Configuration — validated settings loaded from the environment.

Recognised environment variables:
    SECUREVAULT_SERVICE_NAME    = keychain service name (default "SecureVault")
    SECUREVAULT_DATA_DIR        = directory holding metadata.json
    SECUREVAULT_HOST            = bind address (default 127.0.0.1)
    SECUREVAULT_PORT            = bind port (default 3001)
    SECUREVAULT_ALLOWED_ORIGINS = comma separated list of browser origins
    SECUREVAULT_LOG_LEVEL       = logging level name (default INFO)

Security Note:
    Never log secret values. Only log ids, operations and paths.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("securevault.vault")

DEFAULT_SERVICE_NAME = "SecureVault"
DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5000",
    "http://127.0.0.1:5000",
)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def parse_origins(raw: Optional[str]) -> list[str]:
    """Split a comma separated origin list, dropping blanks and trailing '/'."""
    if not raw:
        return list(DEFAULT_ALLOWED_ORIGINS)
    origins = [item.strip().rstrip("/") for item in raw.split(",")]
    return [origin for origin in origins if origin]


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    service_name: str = Field(default=DEFAULT_SERVICE_NAME, min_length=1)
    data_dir: Optional[Path] = None
    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=3001, ge=1, le=65535)
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS)
    )
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the level is one of the standard logging names."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand '~' so a data dir from the environment works as typed."""
        if v is None:
            return v
        return v.expanduser()

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            Populated VaultConfig instance.
        """
        env = os.environ if environ is None else environ
        values: dict = {
            "allowed_origins": parse_origins(env.get("SECUREVAULT_ALLOWED_ORIGINS")),
        }
        if env.get("SECUREVAULT_SERVICE_NAME"):
            values["service_name"] = env["SECUREVAULT_SERVICE_NAME"]
        if env.get("SECUREVAULT_DATA_DIR"):
            values["data_dir"] = env["SECUREVAULT_DATA_DIR"]
        if env.get("SECUREVAULT_HOST"):
            values["host"] = env["SECUREVAULT_HOST"]
        if env.get("SECUREVAULT_PORT"):
            values["port"] = env["SECUREVAULT_PORT"]
        if env.get("SECUREVAULT_LOG_LEVEL"):
            values["log_level"] = env["SECUREVAULT_LOG_LEVEL"]
        config = cls(**values)
        logger.debug(
            "Loaded vault config: service=%s data_dir=%s bind=%s:%d",
            config.service_name, config.data_dir, config.host, config.port,
        )
        return config
