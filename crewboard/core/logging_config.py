"""
Logging setup.

Configured once from the application lifespan; modules use
``logging.getLogger(__name__)``.
"""

import logging

from crewboard.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Attach a stream handler to the ``crewboard`` logger tree."""
    logger = logging.getLogger("crewboard")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level or settings.LOG_LEVEL)
