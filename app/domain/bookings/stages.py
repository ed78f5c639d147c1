"""Job stage definitions and booking status rules"""

import re

# Standard workshop flow used when no process template applies
DEFAULT_STAGES = [
    ("vehicle_checkin", "Vehicle Check-In & Photography"),
    ("stripping", "Stripping"),
    ("surface_prep", "Surface Prep & Inspection"),
    ("paint_correction", "Paint Correction / Buffing"),
    ("ppf_installation", "PPF Installation / Ceramic Treatment"),
    ("reassembly", "Reassembly"),
    ("qc1", "Quality Control #1"),
    ("final_detail", "Final Detail + Ceramic Finishing"),
    ("qc2", "Quality Control #2"),
    ("delivery_prep", "Delivery Prep + Customer Pickup"),
]
STAGE_LABELS = dict(DEFAULT_STAGES)

BOOKING_STATUSES = ["pending", "confirmed", "in_progress", "completed", "cancelled"]
ACTIVE_STATUSES = ["pending", "confirmed", "in_progress"]
PRIORITIES = ["normal", "high", "urgent"]
PRIORITY_ORDER = {"urgent": 0, "high": 1, "normal": 2}


def stage_label(stage: str) -> str:
    return STAGE_LABELS.get(stage, stage)


def stage_key(name: str) -> str:
    """Stable snake_case key for a custom template stage name"""
    key = re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")
    return key[:50] or "stage"


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if a booking status transition is allowed

    Booking statuses: pending → confirmed → in_progress → completed, cancelled from pending/confirmed

    Returns:
        bool: True if transition is valid, False otherwise
    """
    valid_transitions = {
        "pending": ["confirmed", "cancelled"],
        "confirmed": ["in_progress", "cancelled"],
        "in_progress": ["completed"],
        "completed": [],  # Terminal state
        "cancelled": [],  # Terminal state
    }

    if current_status == new_status:
        return True

    return new_status in valid_transitions.get(current_status, [])
