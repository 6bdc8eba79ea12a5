# app/services/event_log.py
"""
Shared system-log sink.
Used by every state-machine service to leave an audit trail in system_logs.
The row is added to the caller's session, so it commits (or rolls back)
together with the change it describes.
"""

import json
import logging
from sqlalchemy.orm import Session
from app.models.system_log import SystemLog
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)

_LEVELS = {"INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}


def record(db: Session, level: str, event: str, details=None):
    """Append a log row. Does not commit."""
    payload = json.dumps(details, default=str) if isinstance(details, dict) else (details or "")
    db.add(SystemLog(level=level, event=event, details=payload, timestamp=utcnow()))
    logger.log(_LEVELS.get(level, logging.INFO), f"[{event}] {payload}")
