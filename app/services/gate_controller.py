# app/services/gate_controller.py
"""
Gate Controller — transient open/closed state for the entrance and exit gates.

Nothing here is persisted: both gates start closed with the process. Opening a
gate schedules an auto-close on the running event loop; opening it again
before that fires replaces the pending close with a fresh one (the deadline is
refreshed, never stacked). Timer callbacks and request handlers all run on the
same loop, so each gate's state is only ever touched by one piece of code at a
time.

Hardware polls GET /gate/status and drives the barrier from it.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional
from app.config import settings
from app.errors import ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

GATES = ("entrance", "exit")


@dataclass
class GateState:
    name: str
    state: str = "closed"                   # open | closed
    close_at: Optional[float] = None        # loop time of the pending auto-close
    _handle: Optional[asyncio.TimerHandle] = None


class GateController:
    def __init__(self):
        self._gates = {name: GateState(name) for name in GATES}

    def _gate(self, gate: str) -> GateState:
        if gate not in self._gates:
            raise ValidationError(f"Invalid gate '{gate}'. Use \"entrance\" or \"exit\".")
        return self._gates[gate]

    def open_gate(self, gate: str, duration: float = None) -> GateState:
        """Open a gate for `duration` seconds. Must be called from inside the event loop."""
        duration = settings.GATE_OPEN_SECONDS if duration is None else duration
        g = self._gate(gate)
        loop = asyncio.get_running_loop()

        was_open = g.state == "open"
        if g._handle is not None:
            g._handle.cancel()
            logger.debug(f"⏱️  Cleared existing {gate} gate timer")

        g.state = "open"
        g.close_at = loop.time() + duration
        g._handle = loop.call_later(duration, self._auto_close, gate, duration)
        logger.info(f"🚪 {gate.upper()} gate: {'ALREADY OPEN' if was_open else 'OPENING'} "
                    f"(will auto-close in {duration}s)")
        return g

    def emergency_open(self, gate: str) -> GateState:
        g = self.open_gate(gate, settings.EMERGENCY_GATE_OPEN_SECONDS)
        logger.warning(f"🚨 EMERGENCY: {gate} gate opened for {settings.EMERGENCY_GATE_OPEN_SECONDS}s")
        return g

    def _auto_close(self, gate: str, duration: float):
        g = self._gates[gate]
        g.state = "closed"
        g.close_at = None
        g._handle = None
        logger.info(f"🚪 {gate.upper()} gate: AUTO-CLOSED after {duration}s")

    def state(self, gate: str) -> str:
        return self._gate(gate).state

    def status(self) -> dict:
        return {name: g.state for name, g in self._gates.items()}

    def seconds_until_close(self, gate: str) -> Optional[float]:
        g = self._gate(gate)
        if g.close_at is None:
            return None
        return max(0.0, g.close_at - asyncio.get_running_loop().time())

    def shutdown(self):
        """Cancel pending timers and close everything (process stop)."""
        for g in self._gates.values():
            if g._handle is not None:
                g._handle.cancel()
            g.state, g.close_at, g._handle = "closed", None, None


# Process-scoped instance, handed to routers through app.dependencies
gate_controller = GateController()
