# app/routers/sensors.py
"""
IoT sensor webhook.
POST /sensors — body is {slot_id: 0|1}, e.g. {"S1": 1, "S2": 0, "S3": 0}.
Always returns 200: readings are processed best-effort, per slot.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Union
from app.database import get_db
from app.services.sensor_service import ingest_sensor_batch
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/sensors", summary="Sensor webhook — occupancy readings")
async def update_slots(readings: Dict[str, Union[bool, int, str]], db: Session = Depends(get_db)):
    logger.info(f"Sensor batch: {readings}")
    results = await ingest_sensor_batch(db, readings)
    return {"ok": True, "changes": {k: v for k, v in results.items() if v}}
