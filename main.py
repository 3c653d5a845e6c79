import logging

import uvicorn

from app.config import settings, setup_logging


setup_logging()

logger = logging.getLogger("projector.main")


if __name__ == "__main__":
    logger.info(f"Projector API server starting on port {settings.port}")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
