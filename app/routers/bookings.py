# app/routers/bookings.py
"""Booking endpoints — create, cancel, list."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.booking import BookingCreate, BookingCreated, BookingOut
from app.services import booking_service

router = APIRouter()


@router.get("/bookings", response_model=list[BookingOut], summary="List bookings with payment status")
def list_bookings(user_id: Optional[str] = None, db: Session = Depends(get_db)):
    return booking_service.list_bookings(db, user_id)


@router.get("/users/{user_id}/bookings", response_model=list[BookingOut], summary="A user's booking history")
def user_booking_history(user_id: str, db: Session = Depends(get_db)):
    return booking_service.list_bookings(db, user_id)


@router.post("/bookings", response_model=BookingCreated, status_code=201, summary="Reserve a slot")
async def create_booking(body: BookingCreate, db: Session = Depends(get_db)):
    """Reserve a slot for [start_time, start_time + duration minutes)."""
    booking = await booking_service.create_booking(
        db,
        user_id=body.user_id,
        slot_id=body.slot_id,
        start_time=body.start_time,
        duration=body.duration,
        vehicle_number=body.vehicle_number,
        phone_number=body.phone_number,
    )
    return {"id": booking.id, "status": "booked"}


@router.post("/bookings/{booking_id}/cancel", summary="Cancel a booking")
async def cancel_booking(booking_id: str, db: Session = Depends(get_db)):
    await booking_service.cancel_booking(db, booking_id)
    return {"ok": True}
