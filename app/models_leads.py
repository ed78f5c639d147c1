"""
Lead CRM Models
Sales leads and their activity timeline
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Lead(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)
    source = Column(String(20), nullable=False, default="website")

    # Vehicle of interest
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    vehicle_color = Column(String(50), nullable=True)

    service_interest = Column(JSON, default=list)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="new", index=True)
    priority = Column(String(10), nullable=False, default="normal")
    assigned_to = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)

    quoted_amount = Column(Float, nullable=True)
    deposit_amount = Column(Float, nullable=True)
    deposit_paid_at = Column(DateTime, nullable=True)
    last_contact_at = Column(DateTime, nullable=True)
    next_follow_up_at = Column(DateTime, nullable=True)
    converted_to_booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    activities = relationship(
        "LeadActivity",
        back_populates="lead",
        cascade="all, delete-orphan",
        order_by="LeadActivity.created_at.desc()",
    )


class LeadActivity(Base):
    __tablename__ = "lead_activities"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=False, index=True)
    # call, whatsapp, email, quote_sent, follow_up, note, status_change, deposit_received
    activity_type = Column(String(30), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    # "metadata" is reserved on declarative classes
    activity_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    lead = relationship("Lead", back_populates="activities")
