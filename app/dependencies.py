# app/dependencies.py
"""FastAPI dependencies for the process-scoped gate and lot state."""

from app.services.gate_controller import GateController, gate_controller
from app.services.lot_monitor import LotStatusMonitor, lot_monitor


def get_gate_controller() -> GateController:
    return gate_controller


def get_lot_monitor() -> LotStatusMonitor:
    return lot_monitor
