from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class BookingCreate(BaseModel):
    # Optional so missing fields reach the ledger and fail as a 400, not a 422
    user_id: Optional[str] = None
    slot_id: Optional[str] = None
    start_time: Optional[datetime] = None
    duration: Optional[int] = None          # minutes
    vehicle_number: Optional[str] = None
    phone_number: Optional[str] = None


class BookingCreated(BaseModel):
    id: str
    status: str = "booked"


class BookingOut(BaseModel):
    id: str
    user_id: Optional[str]
    slot_id: str
    start_time: datetime
    end_time: datetime
    entry_time: Optional[datetime]
    exit_time: Optional[datetime]
    status: str
    vehicle_number: Optional[str]
    phone_number: Optional[str]
    created_at: datetime
    # Joined from payments (None until the booking completes)
    payment_id: Optional[str] = None
    amount: Optional[float] = None
    payment_status: Optional[str] = None


class AccessRequest(BaseModel):
    booking_id: str


class AccessGranted(BaseModel):
    ok: bool = True
    message: str
    gate_open_duration: float
    slot: str


class DriveUpResult(BaseModel):
    ok: bool
    gate_opened: bool
    message: str
