# app/services/booking_service.py
"""
Booking Ledger — reservation lifecycle.

  create  → active      (conflict-checked against live bookings on the slot)
  active  → entered     (mark_entered, from the access coordinator)
  entered → completed   (complete_booking, from the sensor reconciler; bills)
  active/entered → cancelled

Every mutating path runs under the slot's lock and commits in one
transaction with the slot transition and its log rows.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from app.database import transaction
from app.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.models.booking import Booking, LIVE_STATUSES
from app.models.payment import Payment
from app.services import slot_registry
from app.services.cost_calculator import calculate_cost
from app.services.event_log import record
from app.services.slot_locks import slot_locks
from app.utils.clock import utcnow, to_naive_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.get(Booking, booking_id) if booking_id else None
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def find_conflict(db: Session, slot_id: str, start: datetime, end: datetime,
                  exclude_id: Optional[str] = None) -> Optional[Booking]:
    """Live booking on the slot whose [start, end) overlaps the given window."""
    q = db.query(Booking).filter(
        Booking.slot_id == slot_id,
        Booking.status.in_(LIVE_STATUSES),
        Booking.start_time < end,
        Booking.end_time > start,
    )
    if exclude_id:
        q = q.filter(Booking.id != exclude_id)
    return q.first()


async def create_booking(db: Session, user_id: Optional[str], slot_id: Optional[str],
                         start_time: Optional[datetime], duration: Optional[int],
                         vehicle_number: Optional[str] = None,
                         phone_number: Optional[str] = None) -> Booking:
    if not start_time or not duration:
        raise ValidationError("Start time and duration are required.")
    if duration <= 0:
        raise ValidationError("Duration must be a positive number of minutes.")
    if not slot_id:
        raise ValidationError("Slot ID is required.")

    start = to_naive_utc(start_time)
    end = start + timedelta(minutes=duration)

    async with slot_locks.hold(slot_id):
        slot = slot_registry.get_slot(db, slot_id)
        if slot.status == "maintenance":
            raise ConflictError(f"Slot {slot_id} is under maintenance")
        if find_conflict(db, slot_id, start, end):
            logger.info(f"Booking rejected: slot {slot_id} already booked for {start} – {end}")
            raise ConflictError("Slot is already booked for this period")

        booking = Booking(
            id=str(uuid.uuid4()),
            user_id=user_id,
            slot_id=slot_id,
            start_time=start,
            end_time=end,
            status="active",
            vehicle_number=vehicle_number or None,
            phone_number=phone_number or None,
            created_at=utcnow(),
        )
        with transaction(db):
            db.add(booking)
            # Sensor occupancy supersedes a reservation-only "booked"
            if slot.status == "free":
                slot_registry.set_status(db, slot, "booked", "booking")
            record(db, "INFO", "BOOKING_SUCCESS",
                   {"bookingId": booking.id, "userId": user_id, "slotId": slot_id,
                    "vehicleNumber": vehicle_number})
    return booking


async def cancel_booking(db: Session, booking_id: str) -> Booking:
    booking = get_booking(db, booking_id)
    async with slot_locks.hold(booking.slot_id):
        db.refresh(booking)
        if booking.is_terminal:
            raise InvalidStateError(f"Booking is already {booking.status}")

        slot = slot_registry.get_slot(db, booking.slot_id)
        with transaction(db):
            booking.status = "cancelled"
            slot_registry.release_reservation(db, slot, booking.id, "cancel")
            record(db, "INFO", "BOOKING_CANCELLED",
                   {"bookingId": booking.id, "userId": booking.user_id, "slotId": booking.slot_id})
    return booking


async def mark_entered(db: Session, booking_id: str, entry_time: Optional[datetime] = None) -> Booking:
    booking = get_booking(db, booking_id)
    async with slot_locks.hold(booking.slot_id):
        db.refresh(booking)
        if booking.status != "active":
            raise InvalidStateError(f"Booking is {booking.status}, not active")
        with transaction(db):
            booking.status = "entered"
            booking.entry_time = entry_time or utcnow()
    return booking


def complete_booking(db: Session, slot_id: str, exit_time: Optional[datetime] = None) -> Optional[Booking]:
    """
    Close out the latest 'entered' booking on a slot and raise its pending charge.
    Caller holds the slot lock and owns the transaction. A vehicle leaving with
    no matching check-in is logged and otherwise ignored.
    """
    booking = (
        db.query(Booking)
        .filter(Booking.slot_id == slot_id, Booking.status == "entered")
        .order_by(Booking.start_time.desc())
        .first()
    )
    if booking is None:
        record(db, "WARN", "EXIT_NO_BOOKING",
               {"slotId": slot_id,
                "details": 'A vehicle left a slot without a corresponding "entered" booking.'})
        return None

    exit_time = exit_time or utcnow()
    booking.status = "completed"
    booking.exit_time = exit_time

    if db.query(Payment.id).filter(Payment.booking_id == booking.id).first() is None:
        cost = calculate_cost(booking.entry_time, exit_time)
        db.add(Payment(id=str(uuid.uuid4()), booking_id=booking.id, user_id=booking.user_id,
                       amount=cost, status="pending", created_at=utcnow()))
        record(db, "INFO", "VEHICLE_EXIT",
               {"slotId": slot_id, "bookingId": booking.id, "userId": booking.user_id, "cost": cost})
    return booking


async def admin_override_free(db: Session, slot_id: str) -> list[str]:
    """Force-cancel every live booking on the slot and free it. Returns cancelled ids."""
    async with slot_locks.hold(slot_id):
        slot = slot_registry.get_slot(db, slot_id)
        live = db.query(Booking).filter(
            Booking.slot_id == slot_id, Booking.status.in_(LIVE_STATUSES)
        ).all()
        with transaction(db):
            for booking in live:
                booking.status = "cancelled"
            slot_registry.set_status(db, slot, "free", "admin")
            record(db, "WARN", "ADMIN_OVERRIDE",
                   {"slotId": slot_id, "newStatus": "free",
                    "cancelledBookings": [b.id for b in live]})
    return [b.id for b in live]


async def admin_set_status(db: Session, slot_id: str, status: Optional[str]) -> Optional[list[str]]:
    if not slot_id or not status:
        raise ValidationError("Slot ID and new status are required.")
    if status == "free":
        return await admin_override_free(db, slot_id)

    async with slot_locks.hold(slot_id):
        slot = slot_registry.get_slot(db, slot_id)
        with transaction(db):
            slot_registry.set_status(db, slot, status, "admin")
            record(db, "WARN", "ADMIN_OVERRIDE", {"slotId": slot_id, "newStatus": status})
    return None


def list_bookings(db: Session, user_id: Optional[str] = None) -> list[dict]:
    """Bookings joined with their payment (if any), newest start first."""
    q = (
        db.query(Booking, Payment)
        .outerjoin(Payment, Payment.booking_id == Booking.id)
    )
    if user_id:
        q = q.filter(Booking.user_id == user_id)
    rows = q.order_by(Booking.start_time.desc()).all()

    result = []
    for booking, payment in rows:
        item = {c.name: getattr(booking, c.name) for c in Booking.__table__.columns}
        item["payment_id"] = payment.id if payment else None
        item["amount"] = payment.amount if payment else None
        item["payment_status"] = payment.status if payment else None
        result.append(item)
    return result
