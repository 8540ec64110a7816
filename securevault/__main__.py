"""Run the SecureVault backend: ``python -m securevault``."""
import logging

from aiohttp import web

from . import build_service
from .handlers import create_app
from .vault import VaultConfig

logger = logging.getLogger("securevault.api")


def main() -> None:
    config = VaultConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    service = build_service(config)
    app = create_app(service, config)
    logger.info(
        "SecureVault backend running on http://%s:%d (storage: %s)",
        config.host, config.port, service.storage_mode,
    )
    web.run_app(app, host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
