"""Unit tests for the booking ledger."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
from sqlalchemy.exc import OperationalError
from app.database import SessionLocal
from app.errors import ConflictError, InvalidStateError, NotFoundError, PersistenceError, ValidationError
from app.models.booking import Booking
from app.models.payment import Payment
from app.models.slot import Slot
from app.models.system_log import SystemLog
from app.services import booking_service, slot_registry

T = datetime(2026, 5, 1, 10, 0, 0)


async def book(db, slot_id="S1", start=T, duration=60, user_id="user-2"):
    return await booking_service.create_booking(db, user_id, slot_id, start, duration, "ABC-123", "555-0100")


def live_bookings(db, slot_id):
    return db.query(Booking).filter(Booking.slot_id == slot_id,
                                    Booking.status.in_(("active", "entered"))).all()


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_creates_active_booking_and_marks_slot_booked(self, db):
        booking = await book(db)

        assert booking.status == "active"
        assert booking.end_time == T + timedelta(minutes=60)
        assert booking.entry_time is None and booking.exit_time is None
        fresh = SessionLocal()
        try:
            assert fresh.get(Booking, booking.id) is not None
            assert fresh.get(Slot, "S1").status == "booked"
        finally:
            fresh.close()

    @pytest.mark.asyncio
    async def test_overlapping_window_rejected_without_side_effects(self, db):
        await book(db, start=T, duration=60)
        logs_before = db.query(SystemLog).count()

        with pytest.raises(ConflictError):
            await book(db, start=T + timedelta(minutes=30), duration=60)

        assert len(live_bookings(db, "S1")) == 1
        assert db.query(SystemLog).count() == logs_before
        assert db.get(Slot, "S1").status == "booked"

    @pytest.mark.asyncio
    async def test_enclosing_window_rejected(self, db):
        await book(db, start=T + timedelta(minutes=10), duration=10)
        with pytest.raises(ConflictError):
            await book(db, start=T, duration=60)

    @pytest.mark.asyncio
    async def test_touching_boundaries_are_not_conflicts(self, db):
        await book(db, start=T, duration=60)
        after = await book(db, start=T + timedelta(minutes=60), duration=30)
        before = await book(db, start=T - timedelta(minutes=30), duration=30)
        assert after.status == "active" and before.status == "active"
        assert len(live_bookings(db, "S1")) == 3

    @pytest.mark.asyncio
    async def test_other_slot_is_independent(self, db):
        await book(db, slot_id="S1")
        other = await book(db, slot_id="S2")
        assert other.slot_id == "S2"

    @pytest.mark.asyncio
    async def test_entered_booking_still_blocks_the_window(self, db):
        first = await book(db)
        await booking_service.mark_entered(db, first.id, T)
        with pytest.raises(ConflictError):
            await book(db, start=T + timedelta(minutes=15), duration=15)

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_the_window(self, db):
        first = await book(db)
        await booking_service.cancel_booking(db, first.id)
        second = await book(db)
        assert second.status == "active"

    @pytest.mark.asyncio
    async def test_missing_fields_rejected_before_touching_registry(self, db):
        with pytest.raises(ValidationError):
            await booking_service.create_booking(db, "user-2", "S1", None, 60)
        with pytest.raises(ValidationError):
            await booking_service.create_booking(db, "user-2", "S1", T, None)
        with pytest.raises(ValidationError):
            await booking_service.create_booking(db, "user-2", "S1", T, -5)
        assert db.query(Booking).count() == 0
        assert db.get(Slot, "S1").status == "free"

    @pytest.mark.asyncio
    async def test_unknown_slot(self, db):
        with pytest.raises(NotFoundError):
            await book(db, slot_id="S99")

    @pytest.mark.asyncio
    async def test_maintenance_slot_rejected(self, db):
        slot_registry.set_status(db, db.get(Slot, "S3"), "maintenance", "admin")
        db.commit()
        with pytest.raises(ConflictError):
            await book(db, slot_id="S3")

    @pytest.mark.asyncio
    async def test_occupied_slot_stays_occupied(self, db):
        slot_registry.set_status(db, db.get(Slot, "S1"), "occupied", "sensor")
        db.commit()
        await book(db)
        assert db.get(Slot, "S1").status == "occupied"

    @pytest.mark.asyncio
    async def test_aware_start_time_normalized_to_utc(self, db):
        aware = datetime(2026, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        booking = await book(db, start=aware)
        assert booking.start_time == T

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_nothing_behind(self, db):
        logs_before = db.query(SystemLog).count()

        with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))):
            with pytest.raises(PersistenceError):
                await book(db)

        fresh = SessionLocal()
        try:
            assert fresh.query(Booking).count() == 0
            assert fresh.get(Slot, "S1").status == "free"
            assert fresh.get(Slot, "S1").last_sensor_update is None
            assert fresh.query(SystemLog).count() == logs_before
        finally:
            fresh.close()
        assert db.get(Slot, "S1").status == "free"


class TestCancelBooking:
    @pytest.mark.asyncio
    async def test_cancel_frees_booked_slot(self, db):
        booking = await book(db)
        await booking_service.cancel_booking(db, booking.id)

        assert db.get(Booking, booking.id).status == "cancelled"
        assert db.get(Slot, "S1").status == "free"

    @pytest.mark.asyncio
    async def test_cancel_keeps_slot_booked_for_other_live_booking(self, db):
        first = await book(db, start=T, duration=60)
        await book(db, start=T + timedelta(hours=2), duration=60)
        await booking_service.cancel_booking(db, first.id)
        assert db.get(Slot, "S1").status == "booked"

    @pytest.mark.asyncio
    async def test_cancel_does_not_override_occupied_sensor_reading(self, db):
        booking = await book(db)
        slot_registry.set_status(db, db.get(Slot, "S1"), "occupied", "sensor")
        db.commit()

        await booking_service.cancel_booking(db, booking.id)
        assert db.get(Booking, booking.id).status == "cancelled"
        assert db.get(Slot, "S1").status == "occupied"

    @pytest.mark.asyncio
    async def test_cancel_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            await booking_service.cancel_booking(db, "nope")

    @pytest.mark.asyncio
    async def test_terminal_booking_is_immutable(self, db):
        booking = await book(db)
        await booking_service.cancel_booking(db, booking.id)
        with pytest.raises(InvalidStateError):
            await booking_service.cancel_booking(db, booking.id)
        with pytest.raises(InvalidStateError):
            await booking_service.mark_entered(db, booking.id, T)


class TestMarkEntered:
    @pytest.mark.asyncio
    async def test_active_to_entered_sets_entry_time(self, db):
        booking = await book(db)
        await booking_service.mark_entered(db, booking.id, T + timedelta(minutes=2))
        assert booking.status == "entered"
        assert booking.entry_time == T + timedelta(minutes=2)

    @pytest.mark.asyncio
    async def test_only_from_active(self, db):
        booking = await book(db)
        await booking_service.mark_entered(db, booking.id, T)
        with pytest.raises(InvalidStateError):
            await booking_service.mark_entered(db, booking.id, T)


class TestCompleteBooking:
    @pytest.mark.asyncio
    async def test_completes_entered_booking_and_bills_it(self, db):
        booking = await book(db)
        await booking_service.mark_entered(db, booking.id, T)

        completed = booking_service.complete_booking(db, "S1", T + timedelta(minutes=90))
        db.commit()

        assert completed.id == booking.id
        assert completed.status == "completed"
        assert completed.exit_time == T + timedelta(minutes=90)
        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        assert payment.amount == 6.00
        assert payment.status == "pending"
        assert payment.user_id == "user-2"

    @pytest.mark.asyncio
    async def test_latest_start_wins(self, db):
        early = await book(db, start=T, duration=30)
        late = await book(db, start=T + timedelta(minutes=30), duration=30)
        await booking_service.mark_entered(db, early.id, T)
        await booking_service.mark_entered(db, late.id, T + timedelta(minutes=30))

        completed = booking_service.complete_booking(db, "S1", T + timedelta(hours=1))
        assert completed.id == late.id

    def test_no_entered_booking_is_a_logged_anomaly(self, db):
        assert booking_service.complete_booking(db, "S1", T) is None
        db.commit()
        assert db.query(Payment).count() == 0
        warn = db.query(SystemLog).filter(SystemLog.event == "EXIT_NO_BOOKING").one()
        assert warn.level == "WARN"


class TestAdminOverride:
    @pytest.mark.asyncio
    async def test_free_cancels_live_bookings(self, db):
        a = await book(db, start=T, duration=30)
        b = await book(db, start=T + timedelta(hours=1), duration=30)
        await booking_service.mark_entered(db, a.id, T)
        slot_registry.set_status(db, db.get(Slot, "S1"), "occupied", "sensor")
        db.commit()

        cancelled = await booking_service.admin_override_free(db, "S1")

        assert set(cancelled) == {a.id, b.id}
        assert db.get(Slot, "S1").status == "free"
        assert live_bookings(db, "S1") == []
        assert db.query(SystemLog).filter(SystemLog.event == "ADMIN_OVERRIDE").count() == 1

    @pytest.mark.asyncio
    async def test_set_maintenance(self, db):
        assert await booking_service.admin_set_status(db, "S2", "maintenance") is None
        slot = db.get(Slot, "S2")
        assert slot.status == "maintenance" and slot.is_under_maintenance

    @pytest.mark.asyncio
    async def test_set_status_validation(self, db):
        with pytest.raises(ValidationError):
            await booking_service.admin_set_status(db, "S1", None)
        with pytest.raises(ValidationError):
            await booking_service.admin_set_status(db, "S1", "broken")
        with pytest.raises(NotFoundError):
            await booking_service.admin_set_status(db, "S99", "maintenance")


class TestListBookings:
    @pytest.mark.asyncio
    async def test_joined_with_payment_status(self, db):
        done = await book(db, start=T, duration=30, user_id="user-2")
        await book(db, slot_id="S2", start=T + timedelta(hours=1), user_id="user-1")
        await booking_service.mark_entered(db, done.id, T)
        booking_service.complete_booking(db, "S1", T + timedelta(minutes=10))
        db.commit()

        everyone = booking_service.list_bookings(db)
        assert len(everyone) == 2
        assert everyone[0]["start_time"] > everyone[1]["start_time"]

        mine = booking_service.list_bookings(db, "user-2")
        assert len(mine) == 1
        assert mine[0]["payment_status"] == "pending"
        assert mine[0]["amount"] == 2.00
