"""Lead pipeline statuses, sources and metrics"""

from datetime import datetime
from typing import Iterable, Optional

LEAD_STATUSES = ["new", "contacted", "quoted", "follow_up", "deposit_paid", "booked", "lost"]
PIPELINE_COLUMNS = [s for s in LEAD_STATUSES if s != "lost"]
CLOSED_STATUSES = {"booked", "lost"}

LEAD_SOURCES = ["whatsapp", "email", "phone", "walk_in", "referral", "website"]
LEAD_PRIORITIES = ["normal", "high", "urgent"]

ACTIVITY_TYPES = ["call", "whatsapp", "email", "quote_sent", "follow_up", "note"]
SYSTEM_ACTIVITY_TYPES = ["status_change", "deposit_received"]

STATUS_LABELS = {
    "new": "New",
    "contacted": "Contacted",
    "quoted": "Quoted",
    "follow_up": "Follow Up",
    "deposit_paid": "Deposit Paid",
    "booked": "Booked",
    "lost": "Lost",
}


def is_follow_up_due(lead, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return (
        lead.next_follow_up_at is not None
        and lead.next_follow_up_at <= now
        and lead.status not in CLOSED_STATUSES
    )


def conversion_rate(by_status: dict, total: int) -> int:
    """Won leads (booked or deposit paid) over every lead that has been worked"""
    worked = total - by_status.get("new", 0)
    if worked <= 0:
        return 0
    won = by_status.get("booked", 0) + by_status.get("deposit_paid", 0)
    return round(won / worked * 100)


def calculate_metrics(leads: Iterable, now: Optional[datetime] = None) -> dict:
    leads = list(leads)
    now = now or datetime.utcnow()

    by_status = {status: 0 for status in LEAD_STATUSES}
    by_source = {source: 0 for source in LEAD_SOURCES}
    for lead in leads:
        by_status[lead.status] = by_status.get(lead.status, 0) + 1
        by_source[lead.source] = by_source.get(lead.source, 0) + 1

    total = len(leads)
    return {
        "total": total,
        "new": by_status["new"],
        "unassigned": sum(1 for lead in leads if not lead.assigned_to),
        "needs_follow_up": sum(1 for lead in leads if is_follow_up_due(lead, now)),
        "conversion_rate": conversion_rate(by_status, total),
        "by_source": by_source,
        "by_status": by_status,
    }
