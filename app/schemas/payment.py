from pydantic import BaseModel
from datetime import datetime


class PaymentRequest(BaseModel):
    payment_id: str
    user_id: str


class PaymentOut(BaseModel):
    id: str
    booking_id: str
    user_id: str
    amount: float
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentReceipt(BaseModel):
    ok: bool = True
    message: str
    amount: float
    payment: PaymentOut
