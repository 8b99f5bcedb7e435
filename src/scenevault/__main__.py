"""Run the API server: ``python -m src.scenevault`` or the ``scenevault`` script."""

import uvicorn

from src.scenevault.core.config import get_settings
from src.scenevault.core.logging import get_logger, setup_logging
from src.scenevault.main import create_app

logger = get_logger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
