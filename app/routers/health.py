# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + gates + lot availability.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from app.database import get_db
from app.dependencies import get_gate_controller, get_lot_monitor
from app.models.booking import Booking, LIVE_STATUSES
from app.models.slot import Slot
from app.services.gate_controller import GateController
from app.services.lot_monitor import LotStatusMonitor
from app.utils.clock import utcnow

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db),
                 gates: GateController = Depends(get_gate_controller),
                 lot: LotStatusMonitor = Depends(get_lot_monitor)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Gate state and advisory lot status
    - Slot and live booking counts
    """
    result = {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "database": "unknown",
        "gate_status": gates.status(),
        "lot_status": lot.status,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "connected"
        result["total_slots"] = db.query(func.count(Slot.id)).scalar()
        result["active_bookings"] = db.query(func.count(Booking.id)).filter(
            Booking.status.in_(LIVE_STATUSES)
        ).scalar()
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    return result
