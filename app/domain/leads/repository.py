"""Lead repository - Database operations for leads and activities"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models_leads import Lead, LeadActivity
from .pipeline import CLOSED_STATUSES


class LeadRepository:
    """Repository for lead database operations"""

    @staticmethod
    def get_lead(db: Session, lead_id: str) -> Optional[Lead]:
        return db.query(Lead).filter(Lead.id == lead_id).first()

    @staticmethod
    def list_leads(
        db: Session,
        status: Optional[str] = None,
        assigned_to: Optional[str] = None,
        source: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Lead]:
        query = db.query(Lead)
        if status:
            query = query.filter(Lead.status == status)
        if assigned_to:
            query = query.filter(Lead.assigned_to == assigned_to)
        if source:
            query = query.filter(Lead.source == source)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(Lead.name.ilike(term), Lead.phone.ilike(term), Lead.email.ilike(term))
            )
        return query.order_by(Lead.created_at.desc()).all()

    @staticmethod
    def list_due_follow_ups(db: Session, now: datetime) -> list[Lead]:
        return (
            db.query(Lead)
            .filter(
                Lead.next_follow_up_at.isnot(None),
                Lead.next_follow_up_at <= now,
                Lead.status.notin_(sorted(CLOSED_STATUSES)),
            )
            .all()
        )

    @staticmethod
    def add_activity(
        db: Session,
        lead_id: str,
        activity_type: str,
        description: Optional[str],
        created_by: Optional[str],
        metadata: Optional[dict] = None,
    ) -> LeadActivity:
        activity = LeadActivity(
            lead_id=lead_id,
            activity_type=activity_type,
            description=description,
            created_by=created_by,
            activity_metadata=metadata,
        )
        db.add(activity)
        return activity

    @staticmethod
    def reminder_sent(db: Session, lead_id: str, reminder_for: str) -> bool:
        reminders = (
            db.query(LeadActivity)
            .filter(LeadActivity.lead_id == lead_id, LeadActivity.activity_type == "follow_up")
            .all()
        )
        return any(
            (r.activity_metadata or {}).get("reminder_for") == reminder_for for r in reminders
        )

    @staticmethod
    def list_activities(db: Session, lead_id: str) -> list[LeadActivity]:
        return (
            db.query(LeadActivity)
            .filter(LeadActivity.lead_id == lead_id)
            .order_by(LeadActivity.created_at.desc())
            .all()
        )
