"""
Logging setup shared by the application and the request logger.
"""

import logging
import sys
from typing import Optional

from restful.core.config import settings


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger and quiet noisy libraries.
    
    Args:
        level: Log level name, defaults to ``settings.LOG_LEVEL``
    """
    level = (level or settings.LOG_LEVEL).upper()
    
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )
    
    # Set log levels for specific libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    
    logger = logging.getLogger(__name__)
    logger.info("Logging configured", extra={"environment": settings.ENVIRONMENT})


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
