from pydantic import BaseModel
from typing import Optional


class GateStatusOut(BaseModel):
    entrance: str
    exit: str
    lot_status: str


class GateCommand(BaseModel):
    gate: str
    duration: Optional[float] = None    # seconds, /gate/test only
