# app/routers/gate.py
"""
Gate endpoints polled and driven by the gate hardware.
GET  /gate/status         — current {entrance, exit, lot_status}
POST /gate/emergency-open — open a gate for the emergency duration
POST /gate/test           — open a gate for an arbitrary duration (diagnostics)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_gate_controller, get_lot_monitor
from app.schemas.gate import GateCommand, GateStatusOut
from app.services import access_service
from app.services.gate_controller import GateController
from app.services.lot_monitor import LotStatusMonitor
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/gate/status", response_model=GateStatusOut, summary="Gate + lot status for hardware")
def gate_status(gates: GateController = Depends(get_gate_controller),
                lot: LotStatusMonitor = Depends(get_lot_monitor)):
    status = {**gates.status(), "lot_status": lot.status}
    logger.debug(f"📡 Gate status polled: {status}")
    return status


@router.post("/gate/emergency-open", summary="Emergency gate open")
async def emergency_open(body: GateCommand, db: Session = Depends(get_db),
                         gates: GateController = Depends(get_gate_controller)):
    return await access_service.emergency_open(db, gates, body.gate)


@router.post("/gate/test", summary="Open a gate for testing")
async def test_gate(body: GateCommand, gates: GateController = Depends(get_gate_controller)):
    gates.open_gate(body.gate, body.duration)
    logger.info(f"🧪 TEST: {body.gate} gate opened")
    return {"ok": True, "message": f"{body.gate} gate opened for testing",
            "current_state": gates.status()}
