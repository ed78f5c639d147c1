"""Lead service - Pipeline transitions, activity timeline and follow-ups"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import is_staff
from ...models import Booking, Profile
from ...models_leads import Lead
from ...services.notification_service import notify_staff, notify_user
from . import pipeline
from .repository import LeadRepository
from .schemas import (
    ActivityCreate,
    ActivityResponse,
    LeadCreate,
    LeadDetailResponse,
    LeadIntake,
    LeadResponse,
    LeadUpdate,
)

logger = logging.getLogger(__name__)

def format_rand(amount: float) -> str:
    """R2,500 or R2,500.5, the way the web app prints amounts"""
    return "R" + f"{amount:,.2f}".rstrip("0").rstrip(".")


def to_lead_detail(lead: Lead, activities) -> LeadDetailResponse:
    base = LeadResponse.model_validate(lead).model_dump()
    return LeadDetailResponse(
        **base, activities=[ActivityResponse.from_activity(a) for a in activities]
    )


class LeadService:
    """Service layer for the lead pipeline"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LeadRepository()

    def get_lead(self, lead_id: str) -> Lead:
        lead = self.repo.get_lead(self.db, lead_id)
        if not lead:
            raise HTTPException(status_code=404, detail="Lead not found")
        return lead

    def get_lead_detail(self, lead_id: str) -> LeadDetailResponse:
        lead = self.get_lead(lead_id)
        return to_lead_detail(lead, self.repo.list_activities(self.db, lead.id))

    def list_leads(self, status=None, assigned_to=None, source=None, search=None) -> list[Lead]:
        return self.repo.list_leads(self.db, status, assigned_to, source, search)

    def get_pipeline(self) -> list[dict]:
        """Kanban columns; lost leads are kept out of the board"""
        leads = self.repo.list_leads(self.db)
        return [
            {
                "status": status,
                "label": pipeline.STATUS_LABELS[status],
                "leads": [lead for lead in leads if lead.status == status],
            }
            for status in pipeline.PIPELINE_COLUMNS
        ]

    def get_metrics(self) -> dict:
        return pipeline.calculate_metrics(self.repo.list_leads(self.db))

    def _check_assignee(self, assignee_id: Optional[str]):
        if not assignee_id:
            return
        assignee = self.db.query(Profile).filter(Profile.id == assignee_id).first()
        if not assignee or not is_staff(self.db, assignee):
            raise HTTPException(status_code=400, detail="Assignee must be a staff member")

    # ------------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------------

    def create_lead(self, data: LeadCreate, user: Optional[Profile]) -> Lead:
        self._check_assignee(data.assigned_to)

        lead = Lead(
            **data.model_dump(),
            status="new",
            created_by=user.id if user else None,
            last_contact_at=datetime.utcnow(),
        )
        self.db.add(lead)
        self.db.flush()
        self._record_activity(lead, "note", "Lead created", user.id if user else None)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"✅ Lead created: {lead.id} ({lead.source})")
        return lead

    async def submit_website_lead(self, data: LeadIntake) -> Lead:
        lead = self.create_lead(LeadCreate(**data.model_dump(), source="website"), None)

        interest = ", ".join(lead.service_interest or []) or "general enquiry"
        await notify_staff(
            self.db,
            "client_inquiry",
            "New website enquiry",
            f"{lead.name} enquired about {interest}",
        )
        return lead

    # ------------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------------

    def update_lead(self, lead_id: str, data: LeadUpdate) -> Lead:
        lead = self.get_lead(lead_id)
        updates = data.model_dump(exclude_unset=True)
        if "assigned_to" in updates:
            self._check_assignee(updates["assigned_to"])

        for key, value in updates.items():
            setattr(lead, key, value)

        self.db.commit()
        self.db.refresh(lead)
        return lead

    def _record_activity(
        self,
        lead: Lead,
        activity_type: str,
        description: Optional[str],
        user_id: Optional[str],
        metadata: Optional[dict] = None,
    ):
        """Every timeline entry counts as contact with the lead"""
        lead.last_contact_at = datetime.utcnow()
        self.repo.add_activity(self.db, lead.id, activity_type, description, user_id, metadata)

    def _log_status_change(self, lead: Lead, old_status: str, user: Profile):
        self._record_activity(
            lead,
            "status_change",
            f"Status changed from {old_status} to {lead.status}",
            user.id,
            {"old_status": old_status, "new_status": lead.status},
        )

    def change_status(self, lead_id: str, new_status: str, user: Profile) -> Lead:
        """Any move between pipeline statuses is allowed"""
        if new_status not in pipeline.LEAD_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

        lead = self.get_lead(lead_id)
        if lead.status == new_status:
            return lead

        old_status = lead.status
        lead.status = new_status
        self._log_status_change(lead, old_status, user)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"📋 Lead {lead.id}: {old_status} → {new_status}")
        return lead

    def log_activity(self, lead_id: str, data: ActivityCreate, user: Profile) -> Lead:
        lead = self.get_lead(lead_id)

        metadata = {}
        if data.activity_type == "quote_sent" and data.amount is not None:
            lead.quoted_amount = data.amount
            metadata["amount"] = data.amount
        if data.next_follow_up_at is not None:
            lead.next_follow_up_at = data.next_follow_up_at
            metadata["next_follow_up_at"] = data.next_follow_up_at.isoformat()

        self._record_activity(
            lead, data.activity_type, data.description, user.id, metadata or None
        )
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def record_deposit(self, lead_id: str, amount: float, user: Profile) -> Lead:
        if amount <= 0:
            raise HTTPException(status_code=400, detail="Deposit amount must be greater than 0")

        lead = self.get_lead(lead_id)
        old_status = lead.status

        lead.deposit_amount = amount
        lead.deposit_paid_at = datetime.utcnow()
        lead.status = "deposit_paid"

        self._record_activity(
            lead,
            "deposit_received",
            f"Deposit of {format_rand(amount)} received",
            user.id,
            {"amount": amount},
        )
        if old_status != lead.status:
            self._log_status_change(lead, old_status, user)

        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"💰 Deposit {format_rand(amount)} recorded on lead {lead.id}")
        return lead

    def convert_to_booking(self, lead_id: str, booking_id: str, user: Profile) -> Lead:
        lead = self.get_lead(lead_id)
        if not self.db.query(Booking).filter(Booking.id == booking_id).first():
            raise HTTPException(status_code=404, detail="Booking not found")

        old_status = lead.status
        lead.converted_to_booking_id = booking_id
        lead.status = "booked"
        if old_status != "booked":
            self._log_status_change(lead, old_status, user)

        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"🎉 Lead {lead.id} converted to booking {booking_id}")
        return lead

    def delete_lead(self, lead_id: str) -> dict:
        lead = self.get_lead(lead_id)
        self.db.delete(lead)
        self.db.commit()
        logger.info(f"🗑️ Lead deleted: {lead_id}")
        return {"success": True, "message": "Lead deleted"}


async def send_follow_up_reminders(db: Session, now: Optional[datetime] = None) -> int:
    """Remind assignees of leads whose follow-up is due"""
    now = now or datetime.utcnow()
    sent = 0
    for lead in LeadRepository.list_due_follow_ups(db, now):
        if not lead.assigned_to:
            continue
        reminder_for = lead.next_follow_up_at.isoformat()
        if LeadRepository.reminder_sent(db, lead.id, reminder_for):
            continue
        await notify_user(
            db,
            lead.assigned_to,
            "system_alert",
            "Lead follow-up due",
            f"Follow up with {lead.name} ({pipeline.STATUS_LABELS.get(lead.status, lead.status)})",
            priority="high",
            action_required=True,
        )
        # not counted as contact with the lead
        LeadRepository.add_activity(
            db, lead.id, "follow_up", "Follow-up reminder sent", None, {"reminder_for": reminder_for}
        )
        db.commit()
        sent += 1

    logger.info(f"⏰ Sent {sent} lead follow-up reminders")
    return sent
