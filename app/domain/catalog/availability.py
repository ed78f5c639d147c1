"""Daily slot capacity per service category"""

from datetime import date, timedelta
from typing import Iterable, Mapping

SLOTS_PER_SERVICE = {
    "PPF": 2,
    "PPS": 2,
    "Paint Correction": 3,
    "Ceramic": 3,
    "Detailing": 6,
    "Tint": 8,
    "Restoration": 2,
    "Accessories": 10,
}
DEFAULT_SLOTS = 4
AVAILABILITY_WINDOW_DAYS = 90

TIME_SLOTS = [
    "09:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "01:00 PM",
    "02:00 PM",
    "03:00 PM",
    "04:00 PM",
]


def slots_for_category(category: str) -> int:
    return SLOTS_PER_SERVICE.get(category, DEFAULT_SLOTS)


def slot_status(remaining: int) -> str:
    if remaining <= 0:
        return "full"
    if remaining <= 1:
        return "limited"
    return "available"


def day_availability(
    day: date,
    services: Iterable,
    booked: Mapping[tuple[str, date], int],
) -> dict:
    """
    Availability of one day for a set of services.
    The scarcest service decides: any full service makes the day full.
    """
    services = list(services)
    if not services:
        return {"date": day, "status": "available", "available_slots": DEFAULT_SLOTS}

    remaining = min(slots_for_category(s.category) - booked.get((s.id, day), 0) for s in services)
    return {"date": day, "status": slot_status(remaining), "available_slots": max(0, remaining)}


def window(start: date, days: int = AVAILABILITY_WINDOW_DAYS) -> list[date]:
    return [start + timedelta(days=i) for i in range(days)]
