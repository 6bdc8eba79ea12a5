# app/services/slot_registry.py
"""
Slot Registry — authoritative status of each physical slot.

set_status() is the single mutation primitive. The callers own the
precedence rules (maintenance > sensor occupancy > reservation); this module
only applies the change, stamps it and logs SLOT_STATUS_CHANGE.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.errors import NotFoundError, ValidationError
from app.models.booking import Booking, LIVE_STATUSES
from app.models.slot import Slot, SLOT_STATUSES
from app.services.event_log import record
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def list_slots(db: Session) -> list[Slot]:
    return db.query(Slot).order_by(Slot.id).all()


def get_slot(db: Session, slot_id: str) -> Slot:
    slot = db.get(Slot, slot_id)
    if slot is None:
        raise NotFoundError(f"Slot '{slot_id}' not found")
    return slot


def count_free(db: Session) -> int:
    return db.query(func.count(Slot.id)).filter(Slot.status == "free").scalar() or 0


def set_status(db: Session, slot: Slot, new_status: str, cause: str,
               now: Optional[datetime] = None) -> bool:
    """
    Move a slot to new_status. Returns False (and touches nothing) when the
    slot is already there. Does not commit.
    """
    if new_status not in SLOT_STATUSES:
        raise ValidationError(f"Invalid slot status '{new_status}'")
    old = slot.status
    if old == new_status:
        return False

    now = now or utcnow()
    # Last-write-wins, but never move the stamp backwards
    if slot.last_sensor_update is None or now >= slot.last_sensor_update:
        slot.last_sensor_update = now
    slot.status = new_status
    slot.is_under_maintenance = new_status == "maintenance"
    record(db, "INFO", "SLOT_STATUS_CHANGE",
           {"slotId": slot.id, "old": old, "new": new_status, "cause": cause})
    return True


def has_live_booking(db: Session, slot_id: str, exclude_id: Optional[str] = None) -> bool:
    q = db.query(Booking.id).filter(Booking.slot_id == slot_id, Booking.status.in_(LIVE_STATUSES))
    if exclude_id:
        q = q.filter(Booking.id != exclude_id)
    return q.first() is not None


def release_reservation(db: Session, slot: Slot, booking_id: str, cause: str,
                        now: Optional[datetime] = None) -> bool:
    """
    Drop a booking's hold on its slot. Only a 'booked' slot with no other live
    booking goes back to free; occupied and maintenance are left alone.
    """
    if slot.status != "booked":
        if slot.status == "occupied":
            logger.info(f"Slot {slot.id} still occupied after releasing booking {booking_id}")
        return False
    if has_live_booking(db, slot.id, exclude_id=booking_id):
        return False
    return set_status(db, slot, "free", cause, now)
