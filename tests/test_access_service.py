"""Unit tests for the access coordinator (reserved check-in + drive-up)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import datetime, timedelta
from app.errors import InvalidStateError, NotFoundError, TooEarlyError, WindowClosedError
from app.models.booking import Booking
from app.models.slot import Slot
from app.models.system_log import SystemLog
from app.services import access_service, booking_service, slot_registry

T = datetime(2026, 5, 1, 10, 0, 0)


async def make_booking(db, slot_id="S1"):
    return await booking_service.create_booking(db, "user-2", slot_id, T, 60, "ABC-123")


class TestRequestAccess:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", [timedelta(minutes=-5), timedelta(0), timedelta(minutes=5)])
    async def test_inside_window_grants_and_checks_in(self, db, offset):
        booking = await make_booking(db)
        gates = MagicMock()

        result = await access_service.request_access(db, gates, booking.id, now=T + offset)

        assert result["ok"] is True
        assert result["gate_open_duration"] == 10
        assert result["slot"] == "S1"
        gates.open_gate.assert_called_once_with("entrance", 10)
        stored = db.get(Booking, booking.id)
        assert stored.status == "entered"
        assert stored.entry_time == T + offset
        assert db.query(SystemLog).filter(SystemLog.event == "ACCESS_GRANTED").count() == 1

    @pytest.mark.asyncio
    async def test_one_second_too_early(self, db):
        booking = await make_booking(db)
        gates = MagicMock()

        with pytest.raises(TooEarlyError) as exc:
            await access_service.request_access(db, gates, booking.id, now=T - timedelta(minutes=5, seconds=1))

        assert "09:55:00" in exc.value.message
        assert exc.value.boundary == T - timedelta(minutes=5)
        gates.open_gate.assert_not_called()
        assert db.get(Booking, booking.id).status == "active"

    @pytest.mark.asyncio
    async def test_one_second_too_late(self, db):
        booking = await make_booking(db)
        gates = MagicMock()

        with pytest.raises(WindowClosedError) as exc:
            await access_service.request_access(db, gates, booking.id, now=T + timedelta(minutes=5, seconds=1))

        assert "10:05:00" in exc.value.message
        gates.open_gate.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            await access_service.request_access(db, MagicMock(), "missing", now=T)

    @pytest.mark.asyncio
    async def test_second_request_rejected(self, db):
        booking = await make_booking(db)
        gates = MagicMock()
        await access_service.request_access(db, gates, booking.id, now=T)

        with pytest.raises(InvalidStateError):
            await access_service.request_access(db, gates, booking.id, now=T + timedelta(minutes=1))
        assert gates.open_gate.call_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_booking_rejected(self, db):
        booking = await make_booking(db)
        await booking_service.cancel_booking(db, booking.id)
        gates = MagicMock()

        with pytest.raises(InvalidStateError):
            await access_service.request_access(db, gates, booking.id, now=T)
        gates.open_gate.assert_not_called()


class TestDriveUp:
    def _fill(self, db, status="occupied", keep_free=()):
        for slot in db.query(Slot).all():
            if slot.id not in keep_free:
                slot_registry.set_status(db, slot, status, "sensor")
        db.commit()

    @pytest.mark.asyncio
    async def test_full_lot_denied_without_opening(self, db):
        self._fill(db)
        gates = MagicMock()

        result = await access_service.request_drive_up_access(db, gates)

        assert result == {"ok": False, "gate_opened": False, "message": "Parking lot is full"}
        gates.open_gate.assert_not_called()
        assert db.query(SystemLog).filter(SystemLog.event == "DRIVE_UP_REJECTED").count() == 1

    @pytest.mark.asyncio
    async def test_one_free_slot_grants(self, db):
        self._fill(db, keep_free=("S3",))
        gates = MagicMock()

        result = await access_service.request_drive_up_access(db, gates)

        assert result["ok"] is True and result["gate_opened"] is True
        gates.open_gate.assert_called_once_with("entrance", 10)

    @pytest.mark.asyncio
    async def test_grants_regardless_of_reservations(self, db):
        await make_booking(db, "S1")
        await make_booking(db, "S2")
        gates = MagicMock()

        result = await access_service.request_drive_up_access(db, gates)

        assert result["gate_opened"] is True
        assert db.query(Booking).count() == 2

    @pytest.mark.asyncio
    async def test_booked_slots_do_not_count_as_free(self, db):
        self._fill(db, status="booked")
        gates = MagicMock()
        result = await access_service.request_drive_up_access(db, gates)
        assert result["gate_opened"] is False


class TestEmergencyOpen:
    @pytest.mark.asyncio
    async def test_logged_at_warning(self, db):
        gates = MagicMock()
        result = await access_service.emergency_open(db, gates, "exit")

        gates.emergency_open.assert_called_once_with("exit")
        assert result["ok"] is True
        log = db.query(SystemLog).filter(SystemLog.event == "EMERGENCY_GATE_OPEN").one()
        assert log.level == "WARN"
