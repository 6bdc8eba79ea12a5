# app/routers/payments.py
"""Mark a pending charge as paid."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.payment import PaymentReceipt, PaymentRequest
from app.services.payment_service import pay

router = APIRouter()


@router.post("/payments/pay", response_model=PaymentReceipt, summary="Pay a pending charge")
def pay_payment(body: PaymentRequest, db: Session = Depends(get_db)):
    payment = pay(db, body.payment_id, body.user_id)
    return {"ok": True, "message": "Payment successful!", "amount": payment.amount, "payment": payment}
