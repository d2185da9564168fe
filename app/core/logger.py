import logging

from app.core.config import settings
from pkg.log.logger import get_logger as _get_logger


def get_logger(name: str) -> logging.Logger:
    """Application logger, level driven by settings.LOG_LEVEL."""
    return _get_logger(name, level=settings.LOG_LEVEL)


# Example: logger = get_logger(__name__)
