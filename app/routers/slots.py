# app/routers/slots.py
"""Slot listing + admin manual override."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.slot import SlotOut, SlotStatusUpdate
from app.services import booking_service, slot_registry

router = APIRouter()


@router.get("/slots", response_model=list[SlotOut], summary="List all slots")
def get_slots(db: Session = Depends(get_db)):
    return slot_registry.list_slots(db)


@router.put("/slots/{slot_id}/status", summary="Admin override of a slot's status")
async def update_slot_status(slot_id: str, body: SlotStatusUpdate, db: Session = Depends(get_db)):
    """
    Setting a slot to free also cancels any active/entered booking on it.
    Use to correct a stuck sensor or release a slot manually.
    """
    cancelled = await booking_service.admin_set_status(db, slot_id, body.status)
    if body.status == "free":
        return {"ok": True, "cancelled_bookings": cancelled,
                "message": f"Slot {slot_id} is now free and any active booking was cancelled."}
    return {"ok": True, "message": f"Slot {slot_id} updated to {body.status}"}
