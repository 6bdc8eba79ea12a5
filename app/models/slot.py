# app/models/slot.py
"""
Slots table — one row per physical parking space.
Fixed set provisioned at first boot; rows are mutated, never deleted.
status: free | booked | occupied | maintenance
"""

from sqlalchemy import Column, String, DateTime, Boolean
from app.database import Base

SLOT_STATUSES = ("free", "booked", "occupied", "maintenance")


class Slot(Base):
    __tablename__ = "slots"

    id = Column(String(32), primary_key=True)
    status = Column(String(20), default="free", nullable=False, index=True)
    category = Column(String(100), default="General")
    is_under_maintenance = Column(Boolean, default=False, nullable=False)
    last_sensor_update = Column(DateTime)

    def __repr__(self):
        return f"<Slot {self.id} status={self.status}>"
