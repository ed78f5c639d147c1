"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from .stages import BOOKING_STATUSES, PRIORITIES


class BookingCreate(BaseModel):
    service_ids: list[str]
    vehicle_id: str
    booking_date: date
    booking_time: str
    notes: Optional[str] = None

    @field_validator("service_ids")
    @classmethod
    def validate_services(cls, v):
        if not v:
            raise ValueError("Select at least one service")
        # Keep selection order, drop duplicates
        return list(dict.fromkeys(v))


class BookingStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in BOOKING_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(BOOKING_STATUSES)}")
        return v


class BookingUpdate(BaseModel):
    """Staff-editable job details"""

    priority: Optional[str] = None
    estimated_completion: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v is not None and v not in PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(PRIORITIES)}")
        return v


class StageCompleteRequest(BaseModel):
    notes: Optional[str] = None


class StageAssignRequest(BaseModel):
    assigned_to: Optional[str] = None


class StageResponse(BaseModel):
    id: str
    stage: str
    stage_name: Optional[str] = None
    stage_order: int
    completed: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class BookingServiceLine(BaseModel):
    service_id: str
    title: Optional[str] = None
    price: float


class BookingResponse(BaseModel):
    id: str
    user_id: str
    service_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    booking_date: date
    booking_time: str
    status: str
    current_stage: Optional[str] = None
    estimated_completion: Optional[datetime] = None
    priority: str
    payment_amount: float
    payment_status: str
    payment_date: Optional[datetime] = None
    yoco_checkout_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    services: list[BookingServiceLine] = []
    stages: list[StageResponse] = []


class JobTrackingResponse(BaseModel):
    booking: BookingResponse
    vehicle: Optional[str] = None
    progress: int
    completed_stages: int
    total_stages: int
    current_stage_name: Optional[str] = None


class WorkQueueItem(BaseModel):
    booking_id: str
    stage_id: str
    stage: str
    stage_name: Optional[str] = None
    stage_order: int
    priority: str
    booking_status: str
    booking_date: date
    booking_time: str
    assigned_to: Optional[str] = None
    assignee_name: Optional[str] = None
    started_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    vehicle: Optional[str] = None
    service_title: Optional[str] = None


class AuditLogResponse(BaseModel):
    id: str
    booking_id: str
    stage_id: Optional[str] = None
    action: str
    changed_by: Optional[str] = None
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
