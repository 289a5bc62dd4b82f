# backend/core/logging.py

import logging
import sys

from core.config import settings


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging() -> None:
    """
    Route relay logs to stdout at settings.LOG_LEVEL.

    Called once from main.py before the app is built. Under uvicorn the
    root logger already has handlers; only the level is applied then.
    Join/leave/relay lines are INFO, rejected messages WARNING, failed
    socket writes ERROR. Message text never goes to the log.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # One access line per history GET is noise next to relay logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    """Named logger under the root configured by setup_logging()."""
    return logging.getLogger(name)
