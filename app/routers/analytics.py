# app/routers/analytics.py
"""Read-only analytics derived from bookings, payments and the system log."""

import json
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import case, extract, func
from app.database import get_db
from app.models.booking import Booking
from app.models.payment import Payment
from app.models.slot import Slot
from app.models.system_log import SystemLog
from app.utils.clock import utcnow
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

TREND_LOG_WINDOW = 100
TREND_POINTS = 20
TREND_TIME_FORMAT = "%Y-%m-%dT%H:%M"


def _stay_minutes(booking: Booking) -> float:
    return (booking.exit_time - booking.entry_time).total_seconds() / 60


@router.get("/analytics/revenue", summary="Paid revenue per day (last 30 days with revenue)")
def get_revenue(db: Session = Depends(get_db)):
    day = func.date(Payment.created_at)
    rows = (
        db.query(day.label("date"), func.sum(Payment.amount), func.count(Payment.id))
        .filter(Payment.status == "paid")
        .group_by(day)
        .order_by(day.desc())
        .limit(30)
        .all()
    )
    daily = [{"date": str(d), "revenue": round(rev or 0, 2), "transactions": n} for d, rev, n in rows]
    total = sum(r["revenue"] for r in daily)
    count = sum(r["transactions"] for r in daily)
    return {
        "daily_revenue": daily,
        "total_revenue": round(total, 2),
        "total_transactions": count,
        "average_per_transaction": round(total / count, 2) if count else 0,
    }


@router.get("/analytics/slot-utilization", summary="Per-slot booking counts and average stay")
def get_slot_utilization(db: Session = Depends(get_db)):
    rows = (
        db.query(
            Slot.id,
            func.count(Booking.id),
            func.sum(case((Booking.status == "completed", 1), else_=0)),
            func.sum(case((Booking.status == "cancelled", 1), else_=0)),
        )
        .outerjoin(Booking, Booking.slot_id == Slot.id)
        .group_by(Slot.id)
        .all()
    )
    finished = db.query(Booking).filter(Booking.exit_time.isnot(None), Booking.entry_time.isnot(None)).all()
    stays = {}
    for b in finished:
        stays.setdefault(b.slot_id, []).append(_stay_minutes(b))

    result = []
    for slot_id, total, completed, cancelled in rows:
        durations = stays.get(slot_id)
        result.append({
            "slot_id": slot_id,
            "total_bookings": total,
            "completed_bookings": completed or 0,
            "cancelled_bookings": cancelled or 0,
            "avg_duration_minutes": round(sum(durations) / len(durations), 2) if durations else None,
        })
    return sorted(result, key=lambda r: r["total_bookings"], reverse=True)


@router.get("/analytics/users/{user_id}/stats", summary="One user's booking and spending summary")
def get_user_stats(user_id: str, db: Session = Depends(get_db)):
    total = db.query(func.count(Booking.id)).filter(Booking.user_id == user_id).scalar()
    completed = db.query(func.count(Booking.id)).filter(
        Booking.user_id == user_id, Booking.status == "completed"
    ).scalar()
    spent = db.query(func.sum(Payment.amount)).filter(
        Payment.user_id == user_id, Payment.status == "paid"
    ).scalar() or 0
    finished = db.query(Booking).filter(
        Booking.user_id == user_id, Booking.exit_time.isnot(None), Booking.entry_time.isnot(None)
    ).all()
    avg_stay = sum(_stay_minutes(b) for b in finished) / len(finished) if finished else 0
    return {
        "total_bookings": total,
        "completed_bookings": completed,
        "total_spent": round(spent, 2),
        "average_stay_minutes": round(avg_stay, 1),
    }


@router.get("/analytics/occupancy", summary="Recent occupied-slot trend, oldest point first")
def get_occupancy_trend(db: Session = Depends(get_db)):
    """
    Rebuilds the trend by walking back from the current occupied count through
    the latest SLOT_STATUS_CHANGE rows. Each point is the count right after
    that change; the change is then undone before stepping further back.
    One point per minute, the latest value within a minute wins.
    """
    occupied = db.query(func.count(Slot.id)).filter(Slot.status == "occupied").scalar() or 0
    logs = (
        db.query(SystemLog)
        .filter(SystemLog.event == "SLOT_STATUS_CHANGE")
        .order_by(SystemLog.timestamp.desc(), SystemLog.id.desc())
        .limit(TREND_LOG_WINDOW)
        .all()
    )

    points = {utcnow().strftime(TREND_TIME_FORMAT): occupied}
    for log in logs:
        try:
            change = json.loads(log.details)
            old, new = change["old"], change["new"]
        except (ValueError, TypeError, KeyError):
            logger.debug(f"Skipping unreadable status-change log {log.id}")
            continue
        points.setdefault(log.timestamp.strftime(TREND_TIME_FORMAT), max(0, occupied))
        if new == "occupied" and old != "occupied":
            occupied -= 1
        elif old == "occupied" and new != "occupied":
            occupied += 1

    trend = [{"time": t, "occupied": n} for t, n in points.items()]
    trend.reverse()
    return trend[-TREND_POINTS:]


@router.get("/analytics/peak-hours", summary="Non-cancelled bookings per start hour (00-23)")
def get_peak_hours(db: Session = Depends(get_db)):
    hour = extract("hour", Booking.start_time)
    rows = (
        db.query(hour, func.count(Booking.id))
        .filter(Booking.status != "cancelled")
        .group_by(hour)
        .all()
    )
    counts = {int(h): n for h, n in rows if h is not None}
    return [{"hour": h, "bookings": counts.get(h, 0), "label": f"{h:02d}:00"} for h in range(24)]
