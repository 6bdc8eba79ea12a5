# app/services/lot_monitor.py
"""
Lot Status Monitor — advisory facility-wide availability.
"available" while at least one slot is free, otherwise "full".
Recomputed on a fixed interval; read by GET /gate/status.
"""

import asyncio
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.database import SessionLocal
from app.services.slot_registry import count_free
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


class LotStatusMonitor:
    def __init__(self):
        self.status = "available"
        self.updated_at = None

    def refresh(self, db: Session) -> str:
        free = count_free(db)
        new = "available" if free > 0 else "full"
        if new != self.status:
            logger.info(f"🅿️  Lot status: {self.status} → {new} ({free} free)")
        self.status = new
        self.updated_at = utcnow()
        return new

    async def run(self, interval: Optional[float] = None):
        """Loop forever; a failed tick is logged and retried on the next one."""
        interval = settings.LOT_STATUS_INTERVAL_SECONDS if interval is None else interval
        logger.info(f"🅿️  Lot status monitor started (every {interval}s)")
        while True:
            db = SessionLocal()
            try:
                self.refresh(db)
            except Exception as e:
                logger.error(f"Error in lot status job: {e}", exc_info=True)
            finally:
                db.close()
            await asyncio.sleep(interval)


lot_monitor = LotStatusMonitor()
