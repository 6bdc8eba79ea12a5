# app/services/auto_cancel_service.py
"""
Auto-Cancel Sweeper — reclaims slots from no-shows.

A booking still 'active' with no entry time whose start + grace period is in
the past gets cancelled and its slot released. The scan itself runs without
any lock; each candidate is then re-checked under its own slot's lock, since
the driver may have checked in between the scan and the cancel.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.database import SessionLocal, transaction
from app.models.booking import Booking
from app.services import slot_registry
from app.services.event_log import record
from app.services.slot_locks import slot_locks
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _is_expired(booking: Booking, cutoff: datetime) -> bool:
    return booking.status == "active" and booking.entry_time is None and booking.start_time < cutoff


async def cancel_expired_bookings(db: Session, now: Optional[datetime] = None) -> list[str]:
    now = now or utcnow()
    cutoff = now - timedelta(minutes=settings.AUTO_CANCEL_GRACE_MINUTES)

    candidates = db.query(Booking.id, Booking.slot_id).filter(
        Booking.status == "active",
        Booking.entry_time.is_(None),
        Booking.start_time < cutoff,
    ).all()
    if not candidates:
        return []

    logger.info(f"Auto-cancelling {len(candidates)} expired booking(s)...")
    cancelled = []
    for booking_id, slot_id in candidates:
        async with slot_locks.hold(slot_id):
            booking = db.get(Booking, booking_id)
            db.refresh(booking)
            if not _is_expired(booking, cutoff):
                continue
            slot = slot_registry.get_slot(db, slot_id)
            with transaction(db):
                booking.status = "cancelled"
                slot_registry.release_reservation(db, slot, booking.id, "auto_cancel", now)
                record(db, "INFO", "AUTO_CANCEL",
                       {"bookingId": booking.id, "slotId": slot_id,
                        "reason": "Grace period expired - user did not check in."})
            cancelled.append(booking_id)
    return cancelled


async def run_auto_cancel_sweeper(interval: Optional[float] = None):
    """Loop forever; a failed scan is logged and retried on the next tick."""
    interval = settings.AUTO_CANCEL_INTERVAL_SECONDS if interval is None else interval
    logger.info(f"⏱️  Auto-cancel sweeper started (every {interval}s)")
    while True:
        db = SessionLocal()
        try:
            await cancel_expired_bookings(db)
        except Exception as e:
            logger.error(f"Error in auto-cancel job: {e}", exc_info=True)
        finally:
            db.close()
        await asyncio.sleep(interval)
