# app/models/booking.py
"""
Bookings table — reservations of a slot for a [start, end) window.
Lifecycle: active → entered → completed, or active/entered → cancelled.
completed and cancelled are terminal.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from app.database import Base

LIVE_STATUSES = ("active", "entered")
TERMINAL_STATUSES = ("completed", "cancelled")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_slot_status", "slot_id", "status"),
    )

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id"), index=True)
    slot_id = Column(String(32), ForeignKey("slots.id"), nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    entry_time = Column(DateTime)             # set on active → entered
    exit_time = Column(DateTime)              # set on entered → completed
    status = Column(String(20), nullable=False, default="active")
    vehicle_number = Column(String(50))
    phone_number = Column(String(50))
    created_at = Column(DateTime, nullable=False)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Booking {self.id} slot={self.slot_id} status={self.status}>"
