"""Run the tablecycle HTTP service."""

from __future__ import annotations

import logging

import uvicorn

from .config import Settings
from .runtime import Tablecycle

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Minimal tablecycle server."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    app = Tablecycle.create_app(settings=settings)
    logger.info("Serving tables from %s", settings.database_url.split("@")[-1])
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
