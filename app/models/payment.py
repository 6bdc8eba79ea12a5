# app/models/payment.py
"""
Payments table — one pending charge per completed booking.
status: pending | paid | failed. Immutable once paid.
"""

from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from app.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)
    booking_id = Column(String(64), ForeignKey("bookings.id"), unique=True, nullable=False)
    user_id = Column(String(64), ForeignKey("users.id"), index=True)
    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Payment {self.id} booking={self.booking_id} amount={self.amount} status={self.status}>"
