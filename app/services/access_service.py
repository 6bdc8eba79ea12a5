# app/services/access_service.py
"""
Access Coordinator — decides when the entrance gate opens.

Reserved vehicles: allowed within [start − grace, start + grace], both ends
inclusive. Inside the window the booking is checked in (active → entered) and
the entrance opens. This is the only automated entry path for a booking.

Drive-up vehicles: allowed whenever at least one slot is free. No booking is
created or touched.
"""

from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.config import settings
from app.database import transaction
from app.errors import TooEarlyError, WindowClosedError
from app.services import booking_service
from app.services.event_log import record
from app.services.gate_controller import GateController
from app.services.slot_registry import count_free
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def access_window(start_time: datetime) -> tuple[datetime, datetime]:
    grace = timedelta(minutes=settings.ACCESS_GRACE_MINUTES)
    return start_time - grace, start_time + grace


def check_window(start_time: datetime, now: datetime):
    opens, closes = access_window(start_time)
    if now < opens:
        raise TooEarlyError(f"Too early. Access available from {opens:%H:%M:%S}", opens)
    if now > closes:
        raise WindowClosedError(f"Access window closed at {closes:%H:%M:%S}", closes)


async def request_access(db: Session, gates: GateController, booking_id: str,
                         now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    booking = booking_service.get_booking(db, booking_id)
    check_window(booking.start_time, now)

    booking = await booking_service.mark_entered(db, booking_id, entry_time=now)
    gates.open_gate("entrance", settings.GATE_OPEN_SECONDS)

    with transaction(db):
        record(db, "INFO", "ACCESS_GRANTED",
               {"bookingId": booking.id, "userId": booking.user_id,
                "vehicleNumber": booking.vehicle_number})
    logger.info(f"✅ Gate opened for booking {booking.id} - Vehicle: {booking.vehicle_number or 'N/A'}")
    return {
        "ok": True,
        "message": "🚪 Gate opening! Welcome to parking!",
        "gate_open_duration": settings.GATE_OPEN_SECONDS,
        "slot": booking.slot_id,
    }


async def request_drive_up_access(db: Session, gates: GateController) -> dict:
    free = count_free(db)
    if free > 0:
        gates.open_gate("entrance", settings.GATE_OPEN_SECONDS)
        with transaction(db):
            record(db, "INFO", "DRIVE_UP_ACCESS", {"result": "Gate opened for drive-up customer",
                                                   "freeSlots": free})
        return {"ok": True, "gate_opened": True, "message": "Gate opening! Welcome!"}

    with transaction(db):
        record(db, "WARN", "DRIVE_UP_REJECTED", {"result": "No free slots - Parking lot full"})
    return {"ok": False, "gate_opened": False, "message": "Parking lot is full"}


async def emergency_open(db: Session, gates: GateController, gate: str) -> dict:
    gates.emergency_open(gate)
    with transaction(db):
        record(db, "WARN", "EMERGENCY_GATE_OPEN", {"gate": gate})
    return {"ok": True, "message": f"{gate} gate opened for {settings.EMERGENCY_GATE_OPEN_SECONDS:g} seconds."}
