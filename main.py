"""Main entry point for running the FastAPI application."""
import logging
import sys

import uvicorn
from pydantic import ValidationError

from awards.config import get_settings
from awards.logging_config import setup_logging

logger = logging.getLogger("awards.main")

if __name__ == "__main__":
    setup_logging()
    try:
        settings = get_settings()
    except ValidationError as e:
        # Refuse to start half-configured (DB_URL and SESSION_SECRET are required)
        logger.critical(f"Invalid configuration, refusing to start: {e}")
        sys.exit(1)

    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Database: {settings.db.url.split('@')[-1] if '@' in settings.db.url else 'SQLite'}")

    uvicorn.run(
        "awards.api:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        reload_dirs=["awards"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
