# app/services/payment_service.py
"""
Payment settlement. Payment is a status flag only (no gateway):
pending → paid. A paid payment is never modified again.
"""

from sqlalchemy.orm import Session
from app.database import transaction
from app.errors import ForbiddenError, NotFoundError
from app.models.payment import Payment
from app.services.event_log import record
from app.utils.logger import get_logger

logger = get_logger(__name__)


def pay(db: Session, payment_id: str, user_id: str) -> Payment:
    payment = db.get(Payment, payment_id) if payment_id else None
    if payment is None:
        raise NotFoundError("Payment not found or access denied.")
    if payment.user_id != user_id:
        logger.warning(f"User {user_id} tried to pay payment {payment_id} owned by {payment.user_id}")
        raise ForbiddenError("Payment not found or access denied.")
    if payment.status == "paid":
        return payment

    with transaction(db):
        payment.status = "paid"
        record(db, "INFO", "PAYMENT_SUCCESS", {"paymentId": payment_id, "userId": user_id,
                                               "amount": payment.amount})
    return payment
