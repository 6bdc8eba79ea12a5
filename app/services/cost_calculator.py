# app/services/cost_calculator.py
"""
Parking charge for a completed stay: hourly rate × hours parked, with a
minimum charge. Missing or non-positive spans are billed the minimum.
"""

from datetime import datetime
from typing import Optional
from app.config import settings


def calculate_cost(entry_time: Optional[datetime], exit_time: Optional[datetime],
                   rate_per_hour: float = None, minimum: float = None) -> float:
    rate = settings.PARKING_RATE_PER_HOUR if rate_per_hour is None else rate_per_hour
    floor = settings.MINIMUM_CHARGE if minimum is None else minimum

    if entry_time is None or exit_time is None:
        return round(floor, 2)
    seconds = (exit_time - entry_time).total_seconds()
    if seconds <= 0:
        return round(floor, 2)
    return round(max(seconds / 3600 * rate, floor), 2)
