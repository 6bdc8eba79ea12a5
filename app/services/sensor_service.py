# app/services/sensor_service.py
"""
Sensor Reconciler — folds occupancy readings into the Slot Registry.

Input: a batch {slot_id: occupied}, e.g. {"S1": 1, "S2": 0}.
  occupied   + slot booked/free → occupied
  unoccupied + slot occupied    → complete the slot's entered booking (bills it),
                                  then free
Anything else is a no-op; maintenance is never touched by a sensor.

Each slot is reconciled under its own lock and its own transaction. A failure on
one slot is logged and the rest of the batch carries on.
"""

from datetime import datetime
from typing import Mapping, Optional
from sqlalchemy.orm import Session
from app.database import transaction
from app.errors import NotFoundError
from app.services import slot_registry
from app.services.booking_service import complete_booking
from app.services.event_log import record
from app.services.slot_locks import slot_locks
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _is_occupied(reading) -> bool:
    if isinstance(reading, str):
        return reading.strip().lower() in ("1", "true", "occupied")
    return reading is True or reading == 1


def next_status(current: str, occupied: bool) -> str:
    if occupied and current in ("booked", "free"):
        return "occupied"
    if not occupied and current == "occupied":
        return "free"
    return current


async def reconcile_slot(db: Session, slot_id: str, occupied: bool,
                         now: Optional[datetime] = None) -> Optional[str]:
    """Apply one reading. Returns the slot's new status, or None if unchanged."""
    now = now or utcnow()
    async with slot_locks.hold(slot_id):
        slot = slot_registry.get_slot(db, slot_id)
        new_status = next_status(slot.status, occupied)
        if new_status == slot.status:
            return None
        with transaction(db):
            if new_status == "free":
                complete_booking(db, slot_id, exit_time=now)
            slot_registry.set_status(db, slot, new_status, "sensor", now)
    return new_status


async def ingest_sensor_batch(db: Session, readings: Mapping[str, object],
                              now: Optional[datetime] = None) -> dict:
    """Best-effort: returns {slot_id: new_status | None | "error"}."""
    now = now or utcnow()
    results = {}
    for slot_id, reading in readings.items():
        try:
            results[slot_id] = await reconcile_slot(db, slot_id, _is_occupied(reading), now)
        except NotFoundError:
            logger.warning(f"Sensor reading for unknown slot {slot_id}, skipped")
            results[slot_id] = "error"
        except Exception as e:
            logger.error(f"Sensor reconcile failed for slot {slot_id}: {e}", exc_info=True)
            results[slot_id] = "error"
            try:
                with transaction(db):
                    record(db, "ERROR", "SENSOR_READING_FAILED", {"slotId": slot_id, "error": str(e)})
            except Exception:
                logger.error(f"Could not record sensor failure for slot {slot_id}", exc_info=True)
    return results
