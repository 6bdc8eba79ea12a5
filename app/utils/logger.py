# app/utils/logger.py
"""
Logging setup for the parking backend.

Every module logs through get_logger(__name__) to the console and to a rotating
application log. The system-log sink (app.services.event_log) is also mirrored
into its own rotating file, so the booking/gate/sensor audit trail can be
tailed without request noise. Directory, file names and rotation come from
settings.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

EVENT_LOGGER = "app.services.event_log"
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_EVENT_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_configured = False


def log_dir() -> str:
    if settings.LOG_DIR:
        return settings.LOG_DIR
    return os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")


def _rotating(filename: str, level: str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=os.path.join(log_dir(), filename),
        maxBytes=settings.LOG_MAX_MB * 1024 * 1024,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=_DATEFMT))
    return handler


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    os.makedirs(log_dir(), exist_ok=True)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(_rotating(settings.LOG_FILE, level, _FORMAT))

    # Audit lines still propagate to the console and application log
    logging.getLogger(EVENT_LOGGER).addHandler(_rotating(settings.EVENT_LOG_FILE, level, _EVENT_FORMAT))

    # Gate status is polled every few seconds; per-request access lines drown the event trail
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
