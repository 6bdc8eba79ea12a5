from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class SlotOut(BaseModel):
    id: str
    status: str
    category: Optional[str]
    is_under_maintenance: bool
    last_sensor_update: Optional[datetime]

    class Config:
        from_attributes = True


class SlotStatusUpdate(BaseModel):
    status: Optional[str] = None
