# driverqueue/utils/logger.py
"""
Logging for the queue service: console plus a size-rotated file.
File location and rotation come from Settings (LOG_DIR, LOG_FILE,
LOG_MAX_BYTES, LOG_BACKUP_COUNT).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from driverqueue.config import settings

DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FORMAT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

_configured = False


def build_file_handler() -> RotatingFileHandler:
    log_dir = settings.LOG_DIR or DEFAULT_LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        filename=os.path.join(log_dir, settings.LOG_FILE),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(settings.LOG_LEVEL.upper())
    handler.setFormatter(LOG_FORMAT)
    return handler


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(build_file_handler())


def get_logger(name: str) -> logging.Logger:
    """Named logger; the root handlers are installed on first use."""
    _configure_root_logger()
    return logging.getLogger(name)
