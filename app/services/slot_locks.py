# app/services/slot_locks.py
"""
Per-slot serialization.

Booking create/cancel, check-in, sensor transitions, admin overrides and the
auto-cancel sweeper all read-check-write a slot and its bookings. Holding the
slot's lock across that sequence keeps two requests from both passing the
conflict check before either commits. Waiting is bounded so no request
blocks indefinitely behind a stuck one.

A slot's entry lives only while some task holds or waits on it, so slot ids
that never existed do not accumulate.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict
from app.config import settings
from app.errors import OperationTimeoutError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SlotLocks:
    def __init__(self):
        self._locks: Dict[str, _Entry] = {}

    def _checkout(self, slot_id: str) -> _Entry:
        entry = self._locks.get(slot_id)
        if entry is None:
            entry = self._locks[slot_id] = _Entry()
        entry.users += 1
        return entry

    def _checkin(self, slot_id: str, entry: _Entry):
        entry.users -= 1
        if entry.users == 0 and self._locks.get(slot_id) is entry:
            del self._locks[slot_id]

    @asynccontextmanager
    async def hold(self, slot_id: str, timeout: float = None):
        timeout = settings.OPERATION_TIMEOUT_SECONDS if timeout is None else timeout
        entry = self._checkout(slot_id)
        try:
            try:
                # A cancelled acquire() never leaves the lock taken
                async with asyncio.timeout(timeout):
                    await entry.lock.acquire()
            except TimeoutError:
                logger.warning(f"Timed out after {timeout}s waiting for slot {slot_id}")
                raise OperationTimeoutError(f"Slot {slot_id} is busy, try again")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(slot_id, entry)

    def clear(self):
        self._locks.clear()


slot_locks = SlotLocks()
