"""Lead domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone
from .pipeline import ACTIVITY_TYPES, LEAD_PRIORITIES, LEAD_SOURCES, LEAD_STATUSES


class LeadBase(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_color: Optional[str] = None
    service_interest: list[str] = []
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class LeadIntake(LeadBase):
    """Public website enquiry"""

    @field_validator("notes")
    @classmethod
    def limit_notes(cls, v):
        if v and len(v) > 2000:
            raise ValueError("Message is too long")
        return v


class LeadCreate(LeadBase):
    source: str = "walk_in"
    priority: str = "normal"
    assigned_to: Optional[str] = None
    quoted_amount: Optional[float] = None
    next_follow_up_at: Optional[datetime] = None

    @field_validator("source")
    @classmethod
    def validate_source(cls, v):
        if v not in LEAD_SOURCES:
            raise ValueError(f"Source must be one of: {', '.join(LEAD_SOURCES)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v not in LEAD_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(LEAD_PRIORITIES)}")
        return v


class LeadUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_color: Optional[str] = None
    service_interest: Optional[list[str]] = None
    notes: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[str] = None
    quoted_amount: Optional[float] = None
    next_follow_up_at: Optional[datetime] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("source")
    @classmethod
    def validate_source(cls, v):
        if v is not None and v not in LEAD_SOURCES:
            raise ValueError(f"Source must be one of: {', '.join(LEAD_SOURCES)}")
        return v

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v is not None and v not in LEAD_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(LEAD_PRIORITIES)}")
        return v


class LeadStatusUpdate(BaseModel):
    # Checked in the service so unknown statuses surface as 400
    status: str


class ActivityCreate(BaseModel):
    activity_type: str
    description: Optional[str] = None
    amount: Optional[float] = None
    next_follow_up_at: Optional[datetime] = None

    @field_validator("activity_type")
    @classmethod
    def validate_type(cls, v):
        if v not in ACTIVITY_TYPES:
            raise ValueError(f"Activity type must be one of: {', '.join(ACTIVITY_TYPES)}")
        return v


class DepositCreate(BaseModel):
    amount: float

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Deposit amount must be greater than 0")
        return v


class ConvertRequest(BaseModel):
    booking_id: str


class ActivityResponse(BaseModel):
    id: str
    lead_id: str
    activity_type: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    metadata: Optional[dict] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_activity(cls, activity) -> "ActivityResponse":
        return cls(
            id=activity.id,
            lead_id=activity.lead_id,
            activity_type=activity.activity_type,
            description=activity.description,
            created_by=activity.created_by,
            metadata=activity.activity_metadata,
            created_at=activity.created_at,
        )


class LeadResponse(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    source: str
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_color: Optional[str] = None
    service_interest: Optional[list[str]] = None
    notes: Optional[str] = None
    status: str
    priority: str
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    quoted_amount: Optional[float] = None
    deposit_amount: Optional[float] = None
    deposit_paid_at: Optional[datetime] = None
    last_contact_at: Optional[datetime] = None
    next_follow_up_at: Optional[datetime] = None
    converted_to_booking_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LeadDetailResponse(LeadResponse):
    activities: list[ActivityResponse] = []


class PipelineColumn(BaseModel):
    status: str
    label: str
    leads: list[LeadResponse]


class LeadMetrics(BaseModel):
    total: int
    new: int
    unassigned: int
    needs_follow_up: int
    conversion_rate: int
    by_source: dict[str, int]
    by_status: dict[str, int]
