# app/routers/access.py
"""Entrance access — reserved check-in and drive-up."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_gate_controller
from app.schemas.booking import AccessGranted, AccessRequest, DriveUpResult
from app.services import access_service
from app.services.gate_controller import GateController

router = APIRouter()


@router.post("/access/request", response_model=AccessGranted, summary="Check in a booking and open the entrance")
async def request_access(body: AccessRequest, db: Session = Depends(get_db),
                         gates: GateController = Depends(get_gate_controller)):
    """Allowed from 5 minutes before to 5 minutes after the booking's start."""
    return await access_service.request_access(db, gates, body.booking_id)


@router.post("/access/drive-up", response_model=DriveUpResult, summary="Unreserved entry if any slot is free")
async def drive_up(db: Session = Depends(get_db), gates: GateController = Depends(get_gate_controller)):
    return await access_service.request_drive_up_access(db, gates)
